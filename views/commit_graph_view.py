import logging
from functools import partial
from typing import TYPE_CHECKING, Callable, Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import (
    QAbstractItemView,
    QApplication,
    QDialog,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMenu,
    QMessageBox,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from components.commit_details_dialog import CommitDetailsDialog
from components.dag_item_delegate import DAGItemDelegate
from components.git_reset_dialog import GitResetDialog
from components.new_branch_dialog import NewBranchDialog
from git_graph_data import Commit
from graph_session import CHERRY_PICK_RANGE, SQUASH, GraphSnapshot, SquashTarget
from threads import GitOperationThread, LoadGraphThread
from utils import get_main_window_by_parent

if TYPE_CHECKING:
    from graph_session import GraphSession

GRAPH_COLUMN, MESSAGE_COLUMN, REFS_COLUMN, AUTHOR_COLUMN, DATE_COLUMN, HASH_COLUMN = range(6)

EMPTY_MESSAGE = "No commits found in this repository"


class CommitGraphView(QWidget):
    commit_selected = pyqtSignal(str)  # 当选择提交时发出信号
    snapshot_changed = pyqtSignal(object)  # 可以从工作线程发出
    operation_succeeded = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.session: Optional["GraphSession"] = None
        # 界面上正在显示的图，选中的行号只对它有效
        self.displayed_snapshot = GraphSnapshot()
        self._load_thread: Optional[LoadGraphThread] = None
        self._refresh_pending = False
        self._operation_threads: list[GitOperationThread] = []
        self.snapshot_changed.connect(self.apply_snapshot)
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout()
        layout.setContentsMargins(5, 5, 5, 5)
        self.setLayout(layout)

        self.history_list = QTreeWidget(self)
        self.history_list.setHeaderLabels(["Graph", "Message", "Refs", "Author", "Date", "Hash"])
        self.history_list.setRootIsDecorated(False)
        self.history_list.setUniformRowHeights(True)
        self.history_list.setSelectionMode(QAbstractItemView.SelectionMode.ExtendedSelection)
        self.history_list.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.history_list.customContextMenuRequested.connect(self.show_context_menu)
        self.history_list.itemClicked.connect(self.on_commit_clicked)
        self.history_list.itemDoubleClicked.connect(self.on_commit_double_clicked)
        self.history_list.setColumnWidth(MESSAGE_COLUMN, 360)
        self.history_list.setColumnWidth(REFS_COLUMN, 160)
        self.history_list.setColumnWidth(AUTHOR_COLUMN, 120)
        self.history_list.setColumnWidth(DATE_COLUMN, 150)

        # 设置 DAG 委托绘制第一列
        self.dag_delegate = DAGItemDelegate(self.history_list)
        self.history_list.setItemDelegateForColumn(GRAPH_COLUMN, self.dag_delegate)
        layout.addWidget(self.history_list)

        self.no_data_label = QLabel(EMPTY_MESSAGE, self)
        self.no_data_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.no_data_label.setStyleSheet("color: grey; font-size: 16px;")
        layout.addWidget(self.no_data_label)
        self.no_data_label.hide()

    def set_session(self, session: "GraphSession"):
        self.session = session
        self.dag_delegate.metrics = session.settings.get_graph_metrics()
        family, size = session.settings.get_font()
        self.history_list.setFont(QFont(family, size))
        session.add_listener(self.snapshot_changed.emit)

    # --- refresh ---

    def refresh(self):
        """在后台重新加载提交图，同一时间只有一个加载在进行"""
        if not self.session:
            return
        if self._load_thread and self._load_thread.isRunning():
            self._refresh_pending = True
            return

        self._load_thread = LoadGraphThread(self.session, self)
        self._load_thread.error.connect(self._on_load_error)
        self._load_thread.finished.connect(self._on_load_finished)
        self._load_thread.start()

    def _on_load_finished(self, _snapshot):
        if self._refresh_pending:
            self._refresh_pending = False
            self.refresh()

    def _on_load_error(self, message: str):
        logging.error("Loading the commit graph failed: %s", message)
        self._notify(f"Failed to load history: {message}", is_error=True)
        self._on_load_finished(None)

    def apply_snapshot(self, snapshot: GraphSnapshot):
        """用新的提交图整体替换当前显示的内容"""
        self.history_list.clear()
        self.displayed_snapshot = snapshot
        self.dag_delegate.set_snapshot(snapshot)

        items = []
        for commit in snapshot.commits:
            item = QTreeWidgetItem()
            item.setData(GRAPH_COLUMN, Qt.ItemDataRole.UserRole, commit.hash)
            item.setText(MESSAGE_COLUMN, commit.message)
            item.setText(REFS_COLUMN, ", ".join(commit.refs))
            item.setText(AUTHOR_COLUMN, commit.author)
            item.setText(DATE_COLUMN, commit.date)
            item.setText(HASH_COLUMN, commit.short_hash)
            if commit.hash == snapshot.head_hash:
                font = item.font(MESSAGE_COLUMN)
                font.setBold(True)
                item.setFont(MESSAGE_COLUMN, font)
            items.append(item)
        self.history_list.addTopLevelItems(items)
        self.history_list.setColumnWidth(GRAPH_COLUMN, self.dag_delegate.width_hint())

        self.history_list.setVisible(not snapshot.is_empty)
        self.no_data_label.setVisible(snapshot.is_empty)

    # --- selection ---

    def selected_indices(self) -> list[int]:
        return sorted(self.history_list.indexOfTopLevelItem(item) for item in self.history_list.selectedItems())

    def selected_hashes(self) -> tuple[str, ...]:
        """选中提交的哈希，按显示顺序 (从新到旧)"""
        return self.displayed_snapshot.hashes_at(self.selected_indices())

    def selection_squash_target(self) -> Optional[SquashTarget]:
        return self.displayed_snapshot.squash_target(self.selected_indices())

    def on_commit_clicked(self, item: QTreeWidgetItem):
        commit_hash = item.data(GRAPH_COLUMN, Qt.ItemDataRole.UserRole)
        if commit_hash:
            self.commit_selected.emit(commit_hash)

    def on_commit_double_clicked(self, item: QTreeWidgetItem):
        commit_hash = item.data(GRAPH_COLUMN, Qt.ItemDataRole.UserRole)
        if commit_hash:
            self.show_commit_details(commit_hash)

    def show_context_menu(self, position):
        item = self.history_list.itemAt(position)
        if not item or not self.session:
            return

        row = self.history_list.indexOfTopLevelItem(item)
        selected = self.selected_indices()
        if len(selected) > 1 and row in selected:
            menu = self._build_range_menu(selected)
        else:
            self.history_list.clearSelection()
            item.setSelected(True)
            menu = self._build_single_menu(self.displayed_snapshot.commits[row])
        menu.exec(self.history_list.viewport().mapToGlobal(position))

    def _build_single_menu(self, commit: Commit) -> QMenu:
        menu = QMenu(self)
        menu.addAction("Show Commit Details").triggered.connect(partial(self.show_commit_details, commit.hash))
        menu.addAction("Copy Hash").triggered.connect(partial(self.copy_hash, commit.hash))
        menu.addAction("Create Branch Here...").triggered.connect(partial(self.create_branch_at, commit))
        menu.addSeparator()
        menu.addAction("Cherry Pick").triggered.connect(partial(self.cherry_pick, commit.hash))
        menu.addAction("Revert Commit").triggered.connect(partial(self.revert_commit, commit))
        menu.addSeparator()
        menu.addAction("Edit Commit Message").triggered.connect(partial(self.edit_commit_message, commit))
        menu.addAction("Reset to Commit").triggered.connect(partial(self.reset_to_commit, commit))
        return menu

    def _build_range_menu(self, sorted_indices: list[int]) -> QMenu:
        # 在构建菜单时就把行号解析成提交，之后的刷新不会影响选择
        snapshot = self.displayed_snapshot
        menu = QMenu(self)
        actions = snapshot.range_actions(sorted_indices)
        if SQUASH in actions:
            target = snapshot.squash_target(sorted_indices)
            menu.addAction("Squash Commits").triggered.connect(partial(self.squash_commits, target))
            menu.addSeparator()
        if CHERRY_PICK_RANGE in actions:
            hashes = snapshot.hashes_at(sorted_indices)
            menu.addAction("Cherry-pick Commits").triggered.connect(partial(self.cherry_pick_range, hashes))
        return menu

    # --- actions ---

    def show_commit_details(self, commit_hash: str):
        if not self.session:
            return
        details = self.session.commit_details(commit_hash)
        if details is None:
            self._notify(f"Failed to load details of {commit_hash[:7]}", is_error=True)
            return
        CommitDetailsDialog(details, self).exec()

    def copy_hash(self, commit_hash: str):
        QApplication.clipboard().setText(commit_hash)
        self._notify("Commit hash copied to clipboard")

    def create_branch_at(self, commit: Commit):
        dialog = NewBranchDialog(self, commit.hash, f"{commit.short_hash} {commit.message}")
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        branch_name = dialog.get_branch_name()
        self.run_operation(
            partial(self.session.create_branch, branch_name, commit.hash, dialog.should_checkout()),
            f"Created branch {branch_name}",
        )

    def cherry_pick(self, commit_hash: str):
        self.run_operation(partial(self.session.cherry_pick, commit_hash), "Commit cherry-picked successfully")

    def revert_commit(self, commit: Commit):
        answer = QMessageBox.question(self, "Revert Commit", f"Are you sure you want to revert commit {commit.short_hash}?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        self.run_operation(partial(self.session.revert, commit.hash), "Commit reverted successfully")

    def edit_commit_message(self, commit: Commit):
        new_message, ok = QInputDialog.getText(
            self, "Edit Commit Message", "New commit message:", QLineEdit.EchoMode.Normal, commit.message
        )
        if not ok or not new_message.strip() or new_message == commit.message:
            return
        self.run_operation(
            partial(self.session.edit_message, commit.hash, new_message), "Commit message updated successfully"
        )

    def reset_to_commit(self, commit: Commit):
        current_branch = self.session.git_manager.get_current_branch()
        dialog = GitResetDialog(current_branch, commit.short_hash, commit.message, self)
        if not dialog.exec():
            return
        mode = dialog.get_selected_mode()
        answer = QMessageBox.question(
            self, "Reset to Commit", f"Are you sure you want to reset to commit {commit.short_hash} ({mode})?"
        )
        if answer != QMessageBox.StandardButton.Yes:
            return
        self.run_operation(
            partial(self.session.reset, commit.hash, mode), f"Reset to commit {commit.short_hash} successfully"
        )

    def squash_commits(self, target: Optional[SquashTarget]):
        if target is None:
            return
        new_message, ok = QInputDialog.getText(
            self, "Squash Commits", f"Squash {len(target.hashes)} commits into one. New commit message:"
        )
        if not ok:
            return
        if not new_message.strip():
            self._notify("Message cannot be empty")
            return
        self.run_operation(
            partial(self.session.squash, target, new_message),
            f"Squashed {len(target.hashes)} commits successfully",
        )

    def cherry_pick_range(self, hashes: tuple[str, ...]):
        self.run_operation(
            partial(self.session.cherry_pick_commits, hashes),
            f"Cherry-picked {len(hashes)} commits successfully",
        )

    def run_operation(self, operation: Callable[[], Optional[str]], success_message: str):
        """在后台执行 git 操作，operation 只能使用提前解析好的哈希"""
        thread = GitOperationThread(operation, self)
        thread.finished.connect(partial(self._on_operation_finished, thread, success_message))
        self._operation_threads.append(thread)
        thread.start()

    def _on_operation_finished(self, thread: GitOperationThread, success_message: str, success: bool, error: str):
        self._operation_threads.remove(thread)
        thread.deleteLater()
        if success:
            self._notify(success_message)
            self.operation_succeeded.emit()
        else:
            QMessageBox.warning(self, "Git", error)

    def _notify(self, message: str, is_error: bool = False):
        main_window = get_main_window_by_parent(self)
        if main_window and hasattr(main_window, "notification_widget"):
            main_window.notification_widget.show_message(message, is_error)
        else:
            logging.info(message)
