# heartline/common/db.py
import logging

from django.db import connections
from django.db.utils import OperationalError

logger = logging.getLogger(__name__)


def ensure_database(alias: str = "default") -> None:
    """
    프로세스 시작 시 DB 연결 확인. 실패하면 예외를 그대로 올려서
    서버가 커넥션을 받기 시작하지 않게 함.
    """
    try:
        connections[alias].ensure_connection()
    except OperationalError:
        logger.error("database %r unreachable, refusing to start", alias)
        raise
    logger.info("database %r reachable", alias)
