from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QCheckBox,
    QDialog,
    QDialogButtonBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QVBoxLayout,
)


class NewBranchDialog(QDialog):
    """新建分支对话框"""

    def __init__(self, parent=None, start_point: Optional[str] = None, start_label: Optional[str] = None):
        super().__init__(parent)
        self.setWindowTitle("Create New Branch")
        self.setMinimumWidth(350)
        self.start_point = start_point

        layout = QVBoxLayout(self)

        # 分支名称
        name_layout = QHBoxLayout()
        name_layout.addWidget(QLabel("Branch Name:"))
        self.name_edit = QLineEdit(self)
        name_layout.addWidget(self.name_edit)
        layout.addLayout(name_layout)

        # 起点，None 表示 HEAD
        self.start_label = QLabel(f"Start point: {start_label or start_point or 'HEAD'}")
        layout.addWidget(self.start_label)

        self.checkout_checkbox = QCheckBox("Checkout branch")
        self.checkout_checkbox.setChecked(True)
        layout.addWidget(self.checkout_checkbox)

        self.buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Cancel | QDialogButtonBox.StandardButton.Ok,
            Qt.Orientation.Horizontal,
            self,
        )
        self.buttons.accepted.connect(self.accept)
        self.buttons.rejected.connect(self.reject)
        layout.addWidget(self.buttons)

        self.name_edit.textChanged.connect(self._update_ok_button)
        self._update_ok_button()

    def _update_ok_button(self):
        ok_button = self.buttons.button(QDialogButtonBox.StandardButton.Ok)
        ok_button.setEnabled(bool(self.get_branch_name()))

    def get_branch_name(self) -> str:
        """获取输入的分支名称"""
        return self.name_edit.text().strip()

    def should_checkout(self) -> bool:
        """是否应该检出分支"""
        return self.checkout_checkbox.isChecked()
