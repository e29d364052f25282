from PySide6.QtWidgets import QWidget, QHBoxLayout, QLabel
from FrontEnd.styles.design_tokens import COLORS

class FooterToday(QWidget):
    def __init__(self, today_text=""):
        super().__init__()
        layout = QHBoxLayout()
        self.status_label = QLabel("")
        self.status_label.setObjectName("StatusLabel")
        layout.addWidget(self.status_label)
        layout.addStretch()
        self.label = QLabel(today_text)
        self.label.setObjectName("TodayLabel")
        layout.addWidget(self.label)
        self.setLayout(layout)
        self.setStyleSheet(f"background: {COLORS['footer_bg']}; border-radius: 16px; padding: 8px 24px; color: {COLORS['footer_text']}; font-size: 16px; font-weight: 500;")

    def set_today(self, focus_seconds, streak_days):
        text = f"Today: {focus_seconds // 60}m focused"
        if streak_days:
            text += f"  ·  {streak_days}-day streak"
        self.label.setText(text)

    def set_status(self, text):
        self.status_label.setText(text)
