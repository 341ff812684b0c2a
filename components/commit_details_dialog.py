import html

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QDialog, QDialogButtonBox, QTextBrowser, QVBoxLayout

from git_graph_data import CommitDetails

ADDED_BACKGROUND = "#c8ffc8"  # 浅绿色
REMOVED_BACKGROUND = "#ffc8c8"  # 浅红色
HUNK_COLOR = "#808080"  # 灰色

NO_DIFF_MESSAGE = "No diff available."


def _render_diff_line(line: str) -> str:
    text = html.escape(line) or " "
    if line.startswith("@@"):
        return f"<span style='color: {HUNK_COLOR};'>{text}</span>"
    if line.startswith("+"):
        return f"<span style='background-color: {ADDED_BACKGROUND};'>{text}</span>"
    if line.startswith("-"):
        return f"<span style='background-color: {REMOVED_BACKGROUND};'>{text}</span>"
    return text


def render_commit_details_html(details: CommitDetails) -> str:
    """
    提交详情的 HTML：提交信息、作者和日期，以及每个文件的补丁。
    所有来自 git 的文本都经过转义。
    """
    message = html.escape(details.subject)
    if details.body:
        message += "\n\n" + html.escape(details.body)

    parts = [
        f"<pre style='white-space: pre-wrap; word-wrap: break-word;'><b>{message}</b></pre>",
        f"<p>{details.hash[:8]} {html.escape(details.author)} on {html.escape(details.author_date)}</p>",
    ]
    if details.commit_date != details.author_date:
        parts.append(f"<p>Committed on {html.escape(details.commit_date)}</p>")

    if not details.files:
        parts.append(f"<p><i>{NO_DIFF_MESSAGE}</i></p>")
        return "".join(parts)

    parts.append(f"<p>{len(details.files)} file(s) changed</p>")
    for file_diff in details.files:
        parts.append(
            f"<h4>{html.escape(file_diff.path)} "
            f"<span style='color: green;'>+{file_diff.added}</span> "
            f"<span style='color: red;'>-{file_diff.removed}</span></h4>"
        )
        if file_diff.lines:
            body = "<br>".join(_render_diff_line(line) for line in file_diff.lines)
            parts.append(f"<pre style='font-family: monospace;'>{body}</pre>")
        else:
            parts.append(f"<p><i>{NO_DIFF_MESSAGE}</i></p>")
    return "".join(parts)


class CommitDetailsDialog(QDialog):
    """显示单个提交详细信息和补丁的对话框"""

    def __init__(self, details: CommitDetails, parent=None):
        super().__init__(parent)
        self.setWindowTitle(f"Commit {details.hash[:8]}")
        self.resize(800, 600)

        layout = QVBoxLayout(self)
        self.text_browser = QTextBrowser(self)
        self.text_browser.setReadOnly(True)
        self.text_browser.setTextInteractionFlags(
            Qt.TextInteractionFlag.TextSelectableByMouse | Qt.TextInteractionFlag.TextSelectableByKeyboard
        )
        self.text_browser.setHtml(render_commit_details_html(details))
        layout.addWidget(self.text_browser)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close, Qt.Orientation.Horizontal, self)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)
