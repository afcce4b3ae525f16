import bcrypt


def hash_password(password: str) -> str:
    # bcrypt.gensalt()產生隨機的鹽值；.decode()將bytes轉成字串存入資料庫
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
