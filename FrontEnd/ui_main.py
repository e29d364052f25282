from PySide6.QtWidgets import (
	QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QListWidget,
	QStackedWidget, QListWidgetItem, QTableWidget, QTableWidgetItem, QSizePolicy, QComboBox,
	QSpinBox, QLineEdit, QMessageBox
)
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure
from PySide6.QtCore import Qt
from loguru import logger

from BackEnd.core.clock import fmt_hms, fmt_mmss
from BackEnd.core.config import get_settings
from BackEnd.core.errors import Conflict, OperationInProgress, StoreUnavailable
from BackEnd.core.models import SessionType
from BackEnd.repos.session_cache import SessionCache
from BackEnd.repos.session_repo import SessionRepo
from BackEnd.repos.subject_repo import SubjectRepo
from BackEnd.services.timer_engine import compute_timer_state
from BackEnd.services.timer_service import TimerService
from FrontEnd.components.footer_today import FooterToday
from FrontEnd.styles.design_tokens import COLORS, build_stylesheet

SESSION_TYPES = [
	("Focus", SessionType.FOCUS),
	("Short Break", SessionType.SHORT_BREAK),
	("Long Break", SessionType.LONG_BREAK),
]


class MainWindow(QMainWindow):
	def __init__(self, user_id="local"):
		super().__init__()
		self.setWindowTitle("EduTrack Focus")
		self.resize(1000, 650)
		self.setStyleSheet(build_stylesheet())

		self.user_id = user_id
		self.settings = get_settings()
		self.subjects = SubjectRepo()
		self.session_repo = SessionRepo()
		self.timer_service = TimerService(user_id, repo=self.session_repo, cache=SessionCache())
		self.stats_service = self.timer_service.stats

		# --- Sidebar + pages ---
		self.sidebar = QListWidget()
		self.sidebar.setFixedWidth(200)
		self.sidebar.setSpacing(12)
		self.sidebar.addItem(QListWidgetItem("Timer"))
		self.sidebar.addItem(QListWidgetItem("Statistics"))
		self.sidebar.setCurrentRow(0)

		self.pages = QStackedWidget()
		self.pages.addWidget(self._build_timer_tab())
		self.pages.addWidget(self._build_stats_tab())
		self.sidebar.currentRowChanged.connect(self._on_page_changed)

		root = QWidget()
		root_layout = QHBoxLayout()
		root_layout.setContentsMargins(0, 0, 0, 0)
		root_layout.addWidget(self.sidebar)
		root_layout.addWidget(self.pages)
		root.setLayout(root_layout)
		self.setCentralWidget(root)

		self.timer_service.tick.connect(self._on_tick)
		self.timer_service.state_changed.connect(self._on_state)
		self.timer_service.session_completed.connect(self._on_session_completed)
		self.timer_service.stale_reclaimed.connect(self._on_stale_reclaimed)

		self._paint_cached_session()
		self._reconcile()

	def closeEvent(self, event):
		self.timer_service.shutdown()
		super().closeEvent(event)

	# --- page builders ---

	def _build_timer_tab(self):
		w = QWidget()
		outer = QVBoxLayout()
		outer.setContentsMargins(32, 32, 32, 32)

		# Subject / type / duration pickers
		picker_row = QHBoxLayout()
		self.subject_combo = QComboBox()
		self.subject_combo.setMinimumWidth(180)
		self.new_subject_edit = QLineEdit()
		self.new_subject_edit.setPlaceholderText("New subject")
		add_subject_btn = QPushButton("Add")
		add_subject_btn.clicked.connect(self._add_subject)
		self.type_combo = QComboBox()
		for label, session_type in SESSION_TYPES:
			self.type_combo.addItem(label, session_type.value)
		self.type_combo.currentIndexChanged.connect(self._on_type_changed)
		self.duration_spin = QSpinBox()
		self.duration_spin.setRange(1, 240)
		self.duration_spin.setSuffix(" min")
		self.duration_spin.setValue(self.settings.DEFAULT_FOCUS_MINUTES)
		for widget in (self.subject_combo, self.new_subject_edit, add_subject_btn, self.type_combo, self.duration_spin):
			picker_row.addWidget(widget)
		outer.addLayout(picker_row)
		outer.addStretch()

		# Timer card
		timer_card = QWidget()
		timer_card.setObjectName("TimerCard")
		timer_card_layout = QVBoxLayout()
		timer_card_layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
		timer_card.setLayout(timer_card_layout)

		self.subject_label = QLabel("")
		self.subject_label.setObjectName("SubjectLabel")
		self.subject_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
		timer_card_layout.addWidget(self.subject_label)

		self.timer_label = QLabel(fmt_mmss(self.timer_service.default_duration_seconds))
		self.timer_label.setObjectName("TimerLabel")
		self.timer_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
		timer_card_layout.addWidget(self.timer_label)

		btn_layout = QHBoxLayout()
		btn_layout.setSpacing(24)
		self.start_btn = QPushButton("Start Session")
		self.start_btn.setObjectName("StartBtn")
		self.pause_btn = QPushButton("Pause")
		self.end_btn = QPushButton("End Session")
		self.reset_btn = QPushButton("Restart")
		for btn in (self.start_btn, self.pause_btn, self.end_btn, self.reset_btn):
			btn.setMinimumHeight(56)
			btn_layout.addWidget(btn)
		timer_card_layout.addSpacing(24)
		timer_card_layout.addLayout(btn_layout)

		outer.addWidget(timer_card, alignment=Qt.AlignmentFlag.AlignHCenter)
		outer.addStretch()

		self.footer_today = FooterToday()
		outer.addWidget(self.footer_today)
		w.setLayout(outer)

		self.start_btn.clicked.connect(self._start)
		self.pause_btn.clicked.connect(self._pause_resume)
		self.end_btn.clicked.connect(lambda: self._run(self.timer_service.end_session))
		self.reset_btn.clicked.connect(lambda: self._run(self.timer_service.reset_session))

		self._reload_subjects()
		self._set_buttons("idle")
		return w

	def _build_stats_tab(self):
		w = QWidget()
		layout = QVBoxLayout()
		layout.setAlignment(Qt.AlignmentFlag.AlignTop)
		layout.setContentsMargins(32, 32, 32, 32)

		# Bar chart (matplotlib)
		self.figure = Figure(figsize=(5, 2.5))
		self.canvas = FigureCanvas(self.figure)
		layout.addWidget(self.canvas)

		self.stats_table = QTableWidget()
		self.stats_table.setColumnCount(4)
		self.stats_table.setHorizontalHeaderLabels(["Subject", "Focus time", "Sessions", "Last completed"])
		self.stats_table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
		self.stats_table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
		self.stats_table.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
		layout.addWidget(self.stats_table)
		w.setLayout(layout)
		return w

	# --- actions ---

	def _run(self, operation, *args):
		"""Run a lifecycle operation, turning store failures into a retry prompt."""
		try:
			return operation(*args)
		except StoreUnavailable as e:
			QMessageBox.warning(self, "Could not reach your study data", f"{e}\n\nPlease try again.")
		except OperationInProgress as e:
			self.footer_today.set_status(f"Please wait: {e}")
		except Conflict as e:
			self.footer_today.set_status(f"Another window is starting a session: {e}")
			self._reconcile()
		return None

	def _start(self):
		subject_id = self.subject_combo.currentData()
		if subject_id is None:
			QMessageBox.information(self, "No subject", "Add a subject to study first.")
			return
		session_type = SessionType(self.type_combo.currentData())
		self._run(self.timer_service.start_session, subject_id, session_type, self.duration_spin.value())

	def _pause_resume(self):
		if self.timer_service.paused:
			self._run(self.timer_service.resume_session)
		else:
			self._run(self.timer_service.pause_session)

	def _add_subject(self):
		name = self.new_subject_edit.text().strip()
		if not name:
			return
		try:
			subject_id = self.subjects.add_subject(name)
		except StoreUnavailable as e:
			QMessageBox.warning(self, "Could not save subject", str(e))
			return
		self.new_subject_edit.clear()
		self._reload_subjects(select_id=subject_id)

	def _reconcile(self):
		result = self._run(self.timer_service.load_active_session)
		if result is not None and result.resumed:
			state = result.state
			self.footer_today.set_status(f"Session resumed: {fmt_mmss(state.remaining_seconds)} remaining")
		self._update_today_label()

	def _paint_cached_session(self):
		cached = self.timer_service.cached_session()
		if cached is None:
			return
		state = compute_timer_state(cached, self.timer_service.clock.now())
		self.subject_label.setText(self.subjects.subject_name(cached.subject_id))
		self.timer_label.setText(fmt_mmss(state.remaining_seconds))

	# --- signal handlers ---

	def _on_tick(self, state):
		self.timer_label.setText(fmt_mmss(state.remaining_seconds))

	def _on_state(self, state):
		self._set_buttons(state)
		session = self.timer_service.session
		if session is not None:
			self.subject_label.setText(self.subjects.subject_name(session.subject_id))
		else:
			self.subject_label.setText("")

	def _on_session_completed(self, session):
		name = self.subjects.subject_name(session.subject_id)
		self.footer_today.set_status(f"{name}: {fmt_hms(session.actual_duration_seconds)} {session.status.value}")
		self._update_today_label()
		self._update_stats()

	def _on_stale_reclaimed(self, notice):
		QMessageBox.information(self, "Previous session closed", notice.message)

	def _on_type_changed(self, _index):
		session_type = SessionType(self.type_combo.currentData())
		self.duration_spin.setValue(self.settings.default_minutes_for(session_type))

	def _on_page_changed(self, row):
		self.pages.setCurrentIndex(row)
		if row == 1:
			self._update_stats()

	def _set_buttons(self, state):
		if state == "running":
			self.start_btn.setEnabled(False)
			self.pause_btn.setEnabled(True)
			self.pause_btn.setText("Pause")
			self.end_btn.setEnabled(True)
			self.reset_btn.setEnabled(True)
		elif state == "paused":
			self.start_btn.setEnabled(False)
			self.pause_btn.setEnabled(True)
			self.pause_btn.setText("Resume")
			self.end_btn.setEnabled(True)
			self.reset_btn.setEnabled(True)
		else:
			self.start_btn.setEnabled(True)
			self.pause_btn.setEnabled(False)
			self.pause_btn.setText("Pause")
			self.end_btn.setEnabled(False)
			self.reset_btn.setEnabled(False)

	# --- data refresh ---

	def _reload_subjects(self, select_id=None):
		self.subject_combo.clear()
		for subject in self.subjects.list_subjects():
			self.subject_combo.addItem(subject["name"], subject["id"])
		if select_id is not None:
			index = self.subject_combo.findData(select_id)
			if index >= 0:
				self.subject_combo.setCurrentIndex(index)

	def _update_today_label(self):
		try:
			total_sec = self.session_repo.today_focus_seconds(self.user_id)
			streak = self.session_repo.daily_streak(self.user_id)
		except StoreUnavailable as e:
			logger.warning(f"Could not refresh today's total: {e}")
			return
		self.footer_today.set_today(total_sec, streak)

	def _update_stats(self):
		try:
			rows = self.stats_service.dashboard(self.user_id)
		except StoreUnavailable as e:
			logger.warning(f"Could not load statistics: {e}")
			return

		self.stats_table.setRowCount(len(rows))
		for row, item in enumerate(rows):
			last = item["last_session_completed_at"]
			self.stats_table.setItem(row, 0, QTableWidgetItem(item["subject_name"]))
			self.stats_table.setItem(row, 1, QTableWidgetItem(fmt_hms(item["total_focus_seconds"])))
			self.stats_table.setItem(row, 2, QTableWidgetItem(str(item["sessions_completed"])))
			self.stats_table.setItem(row, 3, QTableWidgetItem(last.astimezone().strftime("%Y-%m-%d %H:%M") if last else ""))

		x = [item["subject_name"] for item in rows]
		y = [item["total_focus_seconds"] / 3600 for item in rows]
		self.figure.clear()
		self.figure.patch.set_alpha(0.0)
		ax = self.figure.add_subplot(111)
		ax.set_facecolor('#F7FAFC')
		bars = ax.bar(x, y, color=COLORS['chart_bar'], edgecolor=COLORS['chart_edge'], linewidth=1.5, alpha=0.9)
		for bar, value in zip(bars, y):
			if value > 0:
				ax.text(bar.get_x() + bar.get_width()/2, bar.get_height() + 0.05,
				       f'{value:.1f}h', ha='center', va='bottom',
				       fontsize=9, fontweight='600', color=COLORS['chart_axis'])
		ax.set_ylabel("Focus Hours", fontsize=12, fontweight='600', color=COLORS['chart_axis'], labelpad=10)
		ax.set_title("Focus Time by Subject", fontsize=14, fontweight='bold', color=COLORS['chart_axis'], pad=15)
		ax.set_ylim(bottom=0)
		ax.grid(True, axis='y', alpha=0.25, linestyle='--', linewidth=0.8, color=COLORS['chart_grid'])
		ax.set_axisbelow(True)
		ax.tick_params(axis='both', colors=COLORS['chart_axis'], labelsize=10)
		for spine in ['top', 'right']:
			ax.spines[spine].set_visible(False)
		if len(x) > 6:
			ax.tick_params(axis='x', rotation=45)
		self.figure.tight_layout()
		self.canvas.draw()
