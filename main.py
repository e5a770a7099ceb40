import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from marklink.settings_store import JsonSettingsStore
from marklink.ui.main_window import MainWindow

APP_NAME = "MarkLink"
NO_LINKS_ARG = "--no-links"


def _split_startup_args(argv: list[str]) -> tuple[list[str], bool]:
    files: list[str] = []
    skip_links = False
    for arg in argv:
        if arg == NO_LINKS_ARG:
            skip_links = True
            continue
        files.append(arg)
    return files, skip_links


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    files, skip_links = _split_startup_args(args)

    store = JsonSettingsStore()
    settings = store.load()

    app = QApplication([sys.argv[0]])
    app.setStyle("Fusion")
    app.setApplicationName(APP_NAME)

    window = MainWindow(settings)
    if store.last_error:
        window.statusBar().showMessage(f"Settings not loaded: {store.last_error}", 6000)
    for path in files:
        if Path(path).expanduser().is_file():
            window.workspace.open_file(path)
    if not window.workspace.open_document_records():
        window.workspace.new_document()
    window.show()

    if not skip_links:
        window.activate_marker_links()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
