import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from photo_template.logger import get_logger, setup_logger

# --- CLI logging options -----------------------------------------------------
# Qt exits on unknown options, so our own options are parsed first, reflected in
# environment variables (PHOTO_TEMPLATE_LOG_LEVEL, PHOTO_TEMPLATE_LOG_CATS) and
# removed from sys.argv.


def _apply_cli_logging_options() -> None:
    import argparse
    import os as _os

    parser = argparse.ArgumentParser(description="Photo Templates", add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, remaining = parser.parse_known_args(sys.argv[1:])
    if args.log_level:
        _os.environ["PHOTO_TEMPLATE_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        _os.environ["PHOTO_TEMPLATE_LOG_CATS"] = args.log_cats
    sys.argv[:] = [sys.argv[0], *remaining]


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    import argparse

    from photo_template.app.backend import BackendFacade
    from photo_template.settings_manager import SettingsManager, default_data_dir
    from photo_template.ui.main_window import MainWindow

    _apply_cli_logging_options()
    setup_logger()
    logger = get_logger("main")

    if argv is None:
        argv = sys.argv

    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--data-dir", help="Directory holding settings, database and images")
    args, _ = parser.parse_known_args(argv[1:])
    data_dir = Path(args.data_dir).expanduser() if args.data_dir else Path(default_data_dir())

    app = QApplication(argv)
    settings = SettingsManager(str(data_dir / "settings.json"))
    if args.data_dir:
        settings.set("data_dir", str(data_dir))
    logger.debug("settings: %s", settings.data)

    backend = BackendFacade(settings=settings)
    window = MainWindow(backend)
    backend.dispatch("reloadTemplates")
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(run())
