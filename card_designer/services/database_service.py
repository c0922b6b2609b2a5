"""数据库服务模块.

管理模板数据库（SQLite）的引擎和会话。
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from card_designer.models.database import Base
from card_designer.utils.constants import DATABASE_PATH
from card_designer.utils.exceptions import DatabaseError
from card_designer.utils.file_utils import ensure_directory
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)


class DatabaseService:
    """数据库服务.

    Attributes:
        db_path: 数据库文件路径
        engine: SQLAlchemy 引擎

    Example:
        >>> with DatabaseService(tmp_path / "t.db") as db:
        ...     db.init_db()
        ...     with db.session_scope() as session:
        ...         session.add(record)
    """

    def __init__(self, db_path: Optional[Path] = None) -> None:
        """初始化数据库服务.

        Args:
            db_path: 数据库文件路径，默认使用配置路径
        """
        self.db_path = Path(db_path or DATABASE_PATH)
        ensure_directory(self.db_path.parent)

        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            echo=False,
        )
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

        logger.debug(f"数据库服务初始化完成: {self.db_path}")

    def init_db(self) -> None:
        """创建所有表结构.

        Raises:
            DatabaseError: 建表失败
        """
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error(f"数据库初始化失败: {e}")
            raise DatabaseError(f"数据库初始化失败: {e}") from e
        logger.info("数据库表初始化完成")

    def get_session(self) -> Session:
        """获取数据库会话."""
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """事务会话：正常结束提交，异常时回滚.

        Raises:
            DatabaseError: 数据库操作失败
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"数据库操作失败，已回滚: {e}")
            raise DatabaseError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """关闭数据库连接."""
        self.engine.dispose()
        logger.debug("数据库连接已关闭")

    def __enter__(self) -> "DatabaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
