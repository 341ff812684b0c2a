import logging
import os
from functools import partial
from typing import Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal
from PyQt6.QtGui import QAction, QGuiApplication
from PyQt6.QtWidgets import (
    QComboBox,
    QDialog,
    QFileDialog,
    QInputDialog,
    QLabel,
    QMainWindow,
    QMenu,
    QMessageBox,
    QToolBar,
    QToolButton,
)
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from components.new_branch_dialog import NewBranchDialog
from git_manager import ALL_REFS
from graph_session import GraphSession
from notification_widget import NotificationWidget
from settings import Settings
from views.commit_graph_view import CommitGraphView

HEAD_HISTORY = "Current branch (HEAD)"
ALL_BRANCHES = "All branches"

# Files under .git whose change means the history or HEAD moved
GIT_PATHS_OF_INTEREST = [".git/refs/", ".git/logs/HEAD", ".git/HEAD", ".git/packed-refs", ".git/ORIG_HEAD"]


def is_git_change_of_interest(path: str) -> bool:
    path = path.replace(os.sep, "/")
    return any(git_path in path for git_path in GIT_PATHS_OF_INTEREST)


def branch_filter_choices(branches: list[str]) -> list[tuple[str, Optional[str]]]:
    """下拉框的 (显示文本, 分支过滤) 列表，HEAD 的历史排在最前"""
    return [(HEAD_HISTORY, None), (ALL_BRANCHES, ALL_REFS)] + [(branch, branch) for branch in branches]


class GitChangeHandler(FileSystemEventHandler, QObject):
    """Handles file system events from watchdog and signals the main window."""

    git_changed = pyqtSignal(str, str)  # (event_type, path)

    def on_any_event(self, event):
        path = os.fsdecode(event.src_path)
        if is_git_change_of_interest(path):
            logging.debug("Git watchdog event: %s on %s", event.event_type, path)
            self.git_changed.emit(event.event_type, path)


class GitGraphWindow(QMainWindow):
    def __init__(self, settings: Settings):
        super().__init__()
        self.setWindowTitle("Git Graph")

        screen = QGuiApplication.primaryScreen()
        if screen:
            geometry = screen.availableGeometry()
            self.setGeometry(
                geometry.x() + int(geometry.width() * 0.1),
                geometry.y() + int(geometry.height() * 0.1),
                int(geometry.width() * 0.8),
                int(geometry.height() * 0.8),
            )
        else:
            self.resize(1024, 768)

        self.settings = settings
        self.session: Optional[GraphSession] = None
        self.observer = None

        # 合并短时间内的多次 .git 变更
        self.git_refresh_timer = QTimer(self)
        self.git_refresh_timer.setSingleShot(True)
        self.git_refresh_timer.setInterval(500)
        self.git_refresh_timer.timeout.connect(self.on_git_changed)

        self.graph_view = CommitGraphView(self)
        self.graph_view.operation_succeeded.connect(self.update_branches)
        self.setCentralWidget(self.graph_view)
        self.notification_widget = NotificationWidget(self)
        self._setup_toolbar()

    def _setup_toolbar(self):
        toolbar = QToolBar("Main", self)
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        open_action = QAction("Open Folder", self)
        open_action.triggered.connect(self.open_folder_dialog)
        toolbar.addAction(open_action)

        self.recent_menu = QMenu("Recent", self)
        recent_button = QToolButton(self)
        recent_button.setText("Recent")
        recent_button.setMenu(self.recent_menu)
        recent_button.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)
        toolbar.addWidget(recent_button)
        self.update_recent_menu()

        refresh_action = QAction("Refresh", self)
        refresh_action.setShortcut("F5")
        refresh_action.triggered.connect(self.refresh)
        toolbar.addAction(refresh_action)

        toolbar.addSeparator()
        toolbar.addWidget(QLabel("Branch: "))
        self.branch_combo = QComboBox(self)
        self.branch_combo.setMinimumWidth(200)
        self.branch_combo.currentIndexChanged.connect(self.on_branch_filter_changed)
        toolbar.addWidget(self.branch_combo)

        self.branch_menu = QMenu("Branches", self)
        self.branch_menu.addAction("Checkout Branch...").triggered.connect(self.checkout_branch_dialog)
        self.branch_menu.addAction("New Branch...").triggered.connect(self.new_branch_dialog)
        self.branch_menu.addAction("Delete Branch...").triggered.connect(self.delete_branch_dialog)
        self.branch_menu.setEnabled(False)
        branch_button = QToolButton(self)
        branch_button.setText("Branches")
        branch_button.setMenu(self.branch_menu)
        branch_button.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)
        toolbar.addWidget(branch_button)

    def open_folder_dialog(self):
        """打开文件夹选择对话框"""
        folder_path = QFileDialog.getExistingDirectory(self, "Select Git Repository")
        if folder_path:
            self.open_folder(folder_path)

    def open_folder(self, folder_path: str):
        """打开指定的文件夹"""
        self.close_session()

        session = GraphSession(folder_path, self.settings)
        if not session.open():
            self.graph_view.apply_snapshot(session.snapshot)
            self.notification_widget.show_message("Selected folder is not a valid Git repository", is_error=True)
            return

        self.session = session
        self.graph_view.set_session(session)
        self.update_recent_menu()
        self.update_branches()
        self.branch_menu.setEnabled(True)
        self.start_watching_folder(folder_path)
        self.setWindowTitle(f"Git Graph - {folder_path}")
        self.refresh()

    def close_session(self):
        self.stop_watching_folder()
        if self.session:
            self.session.close()
            self.session = None
            self.graph_view.session = None
        self.branch_menu.setEnabled(False)

    def update_recent_menu(self):
        """更新最近打开的文件夹菜单"""
        self.recent_menu.clear()
        for folder in self.settings.get_recent_folders():
            action = self.recent_menu.addAction(folder)
            action.triggered.connect(lambda checked=False, f=folder: self.open_folder(f))
        self.recent_menu.setEnabled(not self.recent_menu.isEmpty())

    def update_branches(self):
        """更新分支过滤下拉框"""
        branches = self.session.git_manager.get_branches() if self.session else []
        self.branch_combo.blockSignals(True)
        self.branch_combo.clear()
        current_index = 0
        for index, (text, branch_filter) in enumerate(branch_filter_choices(branches)):
            self.branch_combo.addItem(text, branch_filter)
            if self.session and branch_filter is not None and branch_filter == self.session.branch_filter:
                current_index = index
        self.branch_combo.setCurrentIndex(current_index)
        self.branch_combo.blockSignals(False)

    def on_branch_filter_changed(self, index: int):
        if not self.session or index < 0:
            return
        self.session.set_branch_filter(self.branch_combo.itemData(index))
        self.refresh()

    def checkout_branch_dialog(self):
        if not self.session:
            return
        current = self.session.git_manager.get_current_branch()
        branches = [b for b in self.session.git_manager.get_branches() if b != current]
        if not branches:
            self.notification_widget.show_message("No other branch to checkout")
            return
        branch, ok = QInputDialog.getItem(self, "Checkout Branch", "Branch:", branches, 0, False)
        if ok and branch:
            self.graph_view.run_operation(partial(self.session.checkout_branch, branch), f"Checked out {branch}")

    def new_branch_dialog(self):
        """在 HEAD 上新建分支"""
        if not self.session:
            return
        dialog = NewBranchDialog(self)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        branch_name = dialog.get_branch_name()
        self.graph_view.run_operation(
            partial(self.session.create_branch, branch_name, None, dialog.should_checkout()),
            f"Created branch {branch_name}",
        )

    def delete_branch_dialog(self):
        if not self.session:
            return
        current = self.session.git_manager.get_current_branch()
        branches = [b for b in self.session.git_manager.get_branches() if b != current]
        if not branches:
            self.notification_widget.show_message("No branch to delete")
            return
        branch, ok = QInputDialog.getItem(self, "Delete Branch", "Branch:", branches, 0, False)
        if not ok or not branch:
            return
        answer = QMessageBox.question(self, "Delete Branch", f"Are you sure you want to delete branch '{branch}'?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        self.graph_view.run_operation(partial(self.session.delete_branch, branch), f"Deleted branch {branch}")

    def refresh(self):
        if self.session:
            self.graph_view.refresh()

    def on_git_changed(self):
        # 分支可能在外部被创建或删除
        self.update_branches()
        self.refresh()

    def start_watching_folder(self, folder_path: str):
        """Starts the watchdog observer for the repository's .git directory."""
        self.stop_watching_folder()
        git_dir = os.path.join(folder_path, ".git")
        if not os.path.isdir(git_dir):
            # worktrees and submodules keep a .git file; skip watching them
            return

        event_handler = GitChangeHandler()
        event_handler.git_changed.connect(self.schedule_git_refresh)
        self._event_handler = event_handler

        self.observer = Observer()
        self.observer.schedule(event_handler, git_dir, recursive=True)
        self.observer.start()
        logging.info("Started watching repository for changes: %s", git_dir)

    def stop_watching_folder(self):
        """Stops the watchdog observer if it's running."""
        if self.observer and self.observer.is_alive():
            self.observer.stop()
            self.observer.join()
            logging.info("Stopped watching repository.")
        self.observer = None

    def schedule_git_refresh(self, event_type=None, path=None):
        """Schedules a git history refresh, debouncing multiple requests."""
        logging.debug("Git change event: %s - %s", event_type, path)
        self.git_refresh_timer.start()

    def closeEvent(self, event):
        """Ensure the watchdog observer is stopped on close."""
        self.close_session()
        super().closeEvent(event)
