from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.config import settings


def build_engine(url: str) -> Engine:
    """
    Create an engine for the given database URL.

    SQLite needs three adjustments compared to PostgreSQL:
    - the connection may be used from FastAPI's worker threads
    - foreign keys (and ON DELETE CASCADE) are off unless enabled per connection
    - SELECT ... FOR UPDATE is not supported, so every transaction takes the
      database write lock up front with BEGIN IMMEDIATE
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    sqlite_engine = create_engine(
        url, connect_args={"check_same_thread": False, "timeout": 30}
    )

    @event.listens_for(sqlite_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # 關閉pysqlite自己的交易處理，改由下方的begin事件發出BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sqlite_engine, "begin")
    def _on_begin(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")

    return sqlite_engine


# 建立與資料庫的底層連線池
# 整個process共用一個engine，在main.py的lifespan結束時dispose
engine = build_engine(settings.DATABASE_URL)
# autocommit=False：需手動呼叫db.commit()，出錯時可以db.rollback()
# autoflush=False：不自動將暫存的變更送出到資料庫
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


# 所有模型繼承同一個基底(這個Base class)
class Base(DeclarativeBase):
    pass


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    # 無論成功或失敗都會執行，未提交的交易在close時回滾
    finally:
        db.close()
