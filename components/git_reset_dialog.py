from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QDialog, QGroupBox, QHBoxLayout, QLabel, QPushButton, QRadioButton, QVBoxLayout

RESET_MODE_DESCRIPTIONS = {
    "soft": "Keep changes staged.",
    "mixed": "Keep changes unstaged.",
    "hard": "Discard all changes.\nWarning: any local changes will be lost.",
}


class GitResetDialog(QDialog):
    """选择 reset 模式 (soft / mixed / hard) 的对话框"""

    def __init__(self, current_branch: str, short_hash: str, commit_message: str, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Reset to Commit")
        self.setMinimumWidth(420)

        self.main_layout = QVBoxLayout(self)

        target = f"<b>{current_branch or 'HEAD'}</b> -> <b>{short_hash}</b> &quot;{commit_message}&quot;"
        self.top_info_label = QLabel(target)
        self.top_info_label.setTextFormat(Qt.TextFormat.RichText)
        self.top_info_label.setWordWrap(True)
        self.main_layout.addWidget(self.top_info_label)

        self.mode_group_box = QGroupBox("Reset type")
        mode_layout = QVBoxLayout(self.mode_group_box)
        self.mode_radios: dict[str, QRadioButton] = {}
        for mode, description in RESET_MODE_DESCRIPTIONS.items():
            radio = QRadioButton(mode.capitalize())
            radio.setChecked(mode == "mixed")
            hint = QLabel(description)
            hint.setWordWrap(True)
            mode_layout.addWidget(radio)
            mode_layout.addWidget(hint)
            self.mode_radios[mode] = radio
        self.main_layout.addWidget(self.mode_group_box)

        button_layout = QHBoxLayout()
        button_layout.addStretch()
        self.cancel_button = QPushButton("Cancel")
        self.cancel_button.clicked.connect(self.reject)
        button_layout.addWidget(self.cancel_button)
        self.reset_button = QPushButton("Reset")
        self.reset_button.setDefault(True)
        self.reset_button.clicked.connect(self.accept)
        button_layout.addWidget(self.reset_button)
        self.main_layout.addLayout(button_layout)

    def get_selected_mode(self) -> str:
        for mode, radio in self.mode_radios.items():
            if radio.isChecked():
                return mode
        return "mixed"
