import logging
import time
from functools import wraps
from typing import Optional

from PyQt6.QtWidgets import QMainWindow, QWidget


def get_main_window_by_parent(parent: QWidget) -> Optional[QMainWindow]:
    while parent:
        if isinstance(parent, QMainWindow):
            return parent
        parent = parent.parent()
    return None


def timeit(func):
    """装饰器，用于测量函数执行时间

    Args:
        func: 被装饰的函数

    Returns:
        wrapper: 包装后的函数
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        end_time = time.time()
        logging.debug("函数 %s 执行耗时：%.4f秒", func.__name__, end_time - start_time)
        return result

    return wrapper
