import logging
import os
import sys

from PyQt6.QtWidgets import QApplication

from git_graph_window import GitGraphWindow
from settings import Settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"


def setup_logging():
    # DEBUG=1 打开调试日志，LOG_TO_FILE=1 同时写入 git_graph.log
    level = logging.DEBUG if os.getenv("DEBUG") == "1" else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)

    if os.getenv("LOG_TO_FILE") == "1":
        file_handler = logging.FileHandler("git_graph.log", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)


def main():
    app = QApplication(sys.argv)
    app.setApplicationName("Git Graph")
    settings = Settings()

    window = GitGraphWindow(settings)
    window.show()

    # 命令行参数优先，其次是上次打开的文件夹
    folder = sys.argv[1] if len(sys.argv) > 1 else settings.get_last_folder()
    if folder and os.path.isdir(folder):
        window.open_folder(os.path.abspath(folder))
    elif folder:
        logging.warning("Folder %s no longer exists", folder)

    window.activateWindow()
    window.raise_()

    sys.exit(app.exec())


if __name__ == "__main__":
    setup_logging()
    main()
