import logging
import os
from datetime import datetime
from typing import Optional, Union

from qiniu_fs.core.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def resolve_log_level(level: Union[int, str]) -> int:
    """把 "INFO" 这样的级别名称转换为 logging 常量，未知名称抛出 ValueError"""
    if isinstance(level, int):
        return level

    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"未知的日志级别: {level}")
    return resolved


def setup_logging(level: Union[int, str, None] = None, log_dir: Optional[str] = None) -> Optional[str]:
    """
    配置根日志记录器

    参数:
        level: 日志级别，可以是 logging 常量或 "INFO" 这样的名称，默认取 settings.LOG_LEVEL
        log_dir: 日志目录，提供时额外按启动时间生成日志文件，默认取 settings.LOG_DIR

    返回:
        日志文件路径，未启用文件日志时返回 None
    """
    level = resolve_log_level(settings.LOG_LEVEL if level is None else level)
    if log_dir is None:
        log_dir = settings.LOG_DIR

    # 创建logger
    logger = logging.getLogger()
    logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT)

    # 创建控制台处理器
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # 清除可能已存在的处理器，然后添加新的处理器
    logger.handlers = []
    logger.addHandler(console_handler)

    if not log_dir:
        return None

    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    # 创建文件处理器，按日期生成日志文件
    log_filename = os.path.join(log_dir, f"qiniu_fs_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log")
    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.info(f"日志文件路径: {log_filename}")
    return log_filename
