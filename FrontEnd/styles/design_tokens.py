# Design tokens for the EduTrack focus timer UI

COLORS = {
    'background': '#F7F9FC',
    'surface': '#E7F0FF',
    'primary': '#5EA1FF',
    'primary_hover': '#4C92F5',
    'text': '#3C4450',
    'text_strong': '#133A62',
    'border': '#DCE3ED',
    'sidebar_active_bg': '#E7F0FF',
    'sidebar_bg': '#F7F9FC',
    'button_secondary_bg': '#E7F0FF',
    'footer_bg': '#E7F0FF',
    'footer_text': '#133A62',
    'chart_bar': '#8FAEC4',
    'chart_edge': '#7B9BB0',
    'chart_axis': '#1E3A56',
    'chart_grid': '#C9D8E2',
}

FONTS = {
    'family': 'Inter, Manrope, Arial, sans-serif',
    'timer_size': 96,
    'timer_weight': 'bold',
    'button_size': 18,
    'button_weight': 600,
    'sidebar_size': 16,
    'text': 16,
    'text_strong': 22,
}


def build_stylesheet():
    """Application-wide QSS assembled from the tokens above."""
    return f"""
    QMainWindow, QWidget {{
        background: {COLORS['background']};
        color: {COLORS['text']};
        font-family: {FONTS['family']};
        font-size: {FONTS['text']}px;
    }}
    QLabel#TimerLabel {{
        font-size: {FONTS['timer_size']}px;
        font-weight: {FONTS['timer_weight']};
        color: {COLORS['text_strong']};
    }}
    QLabel#SubjectLabel {{
        font-size: {FONTS['text_strong']}px;
        color: {COLORS['text_strong']};
    }}
    QWidget#TimerCard {{
        background: {COLORS['surface']};
        border-radius: 24px;
        padding: 32px;
    }}
    QPushButton {{
        background: {COLORS['button_secondary_bg']};
        border: 1px solid {COLORS['border']};
        border-radius: 12px;
        padding: 8px 20px;
        font-size: {FONTS['button_size']}px;
        font-weight: {FONTS['button_weight']};
    }}
    QPushButton#StartBtn {{
        background: {COLORS['primary']};
        color: white;
        border: none;
    }}
    QPushButton#StartBtn:hover {{
        background: {COLORS['primary_hover']};
    }}
    QPushButton:disabled {{
        color: {COLORS['border']};
    }}
    QListWidget {{
        background: {COLORS['sidebar_bg']};
        border: none;
        font-size: {FONTS['sidebar_size']}px;
    }}
    QListWidget::item:selected {{
        background: {COLORS['sidebar_active_bg']};
        color: {COLORS['text_strong']};
    }}
    """
