from PyQt6.QtCore import QTimer, Qt
from PyQt6.QtWidgets import QFrame, QHBoxLayout, QLabel, QToolButton

HIDE_AFTER_MS = 5000
ERROR_HIDE_AFTER_MS = 10000

INFO_STYLE = """
    NotificationWidget {
        background-color: #eef6ee;
        border: 1px solid #4faa5e;
        border-radius: 5px;
    }
"""
ERROR_STYLE = """
    NotificationWidget {
        background-color: #fbeaea;
        border: 1px solid #e05c5c;
        border-radius: 5px;
    }
"""


class NotificationWidget(QFrame):
    """右上角的提示框，用于显示 git 操作的结果；错误停留更久"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setFixedWidth(320)
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.hide()

        row = QHBoxLayout(self)
        row.setContentsMargins(10, 8, 6, 8)

        self.message_label = QLabel()
        self.message_label.setWordWrap(True)
        self.message_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        row.addWidget(self.message_label, 1)

        self.close_button = QToolButton()
        self.close_button.setText("✕")
        self.close_button.setAutoRaise(True)
        self.close_button.clicked.connect(self.hide_widget)
        row.addWidget(self.close_button, 0, Qt.AlignmentFlag.AlignTop)

        self.hide_timer = QTimer(self)
        self.hide_timer.setSingleShot(True)
        self.hide_timer.timeout.connect(self.hide_widget)

    def show_message(self, message: str, is_error: bool = False):
        self.setStyleSheet(ERROR_STYLE if is_error else INFO_STYLE)
        self.message_label.setText(message)
        self.adjustSize()

        parent = self.parentWidget()
        if parent:
            self.move(parent.rect().right() - self.width() - 10, 10)
        self.show()
        self.raise_()
        self.hide_timer.start(ERROR_HIDE_AFTER_MS if is_error else HIDE_AFTER_MS)

    def hide_widget(self):
        self.hide_timer.stop()
        self.hide()
