import os, sys
from PySide6.QtWidgets import QApplication
from BackEnd.core.logging_config import configure_logging
from FrontEnd.ui_main import MainWindow

def main():
    configure_logging()
    app = QApplication(sys.argv)
    win = MainWindow(user_id=os.environ.get("EDUTRACK_USER", "local"))
    win.show()
    sys.exit(app.exec())

if __name__ == "__main__":
    main()
