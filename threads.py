from typing import TYPE_CHECKING, Callable, Optional

from PyQt6.QtCore import QThread, pyqtSignal

if TYPE_CHECKING:
    from graph_session import GraphSession


class LoadGraphThread(QThread):
    """用于在后台读取提交历史并计算提交图的线程"""

    finished = pyqtSignal(object)  # GraphSnapshot
    error = pyqtSignal(str)

    def __init__(self, session: "GraphSession", parent=None):
        super().__init__(parent)
        self.session = session

    def run(self):
        try:
            self.finished.emit(self.session.refresh())
        except Exception as e:
            self.error.emit(str(e))


class GitOperationThread(QThread):
    """用于在后台执行修改历史的 git 操作 (cherry-pick, revert, reset, squash...)"""

    finished = pyqtSignal(bool, str)  # (success, error_message)

    def __init__(self, operation: Callable[[], Optional[str]], parent=None):
        super().__init__(parent)
        self.operation = operation

    def run(self):
        try:
            error = self.operation()
            self.finished.emit(error is None, error or "")
        except Exception as e:
            self.finished.emit(False, str(e))
