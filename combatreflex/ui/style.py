import sys

if sys.platform == "darwin":
    FONT_STACK = 'Helvetica Neue","Arial'
elif sys.platform.startswith("win"):
    FONT_STACK = 'Segoe UI","Arial'
else:
    FONT_STACK = 'DejaVu Sans","Arial'

PUNCH_COLOR = "#ef4444"
KICK_COLOR = "#3b82f6"
WARN_COLOR = "#facc15"
OK_COLOR = "#22c55e"

APP_QSS = f"""
QMainWindow, QWidget {{
    background: #0b0f14;
    color: #e7eef7;
    font-family: "{FONT_STACK}";
    font-size: 14px;
}}

QLabel {{
    color: #e7eef7;
}}

QLabel#muted {{
    color: rgba(231,238,247,0.70);
}}

QPushButton {{
    background: #1f2937;
    border: 1px solid rgba(255,255,255,0.10);
    padding: 10px 14px;
    border-radius: 12px;
    font-weight: 600;
}}
QPushButton:hover {{ background: #263244; }}
QPushButton:pressed {{ background: #1b2431; }}
QPushButton:checked {{
    background: rgba(34,197,94,0.18);
    border: 1px solid rgba(34,197,94,0.40);
}}

QComboBox, QSpinBox {{
    background: rgba(255,255,255,0.06);
    border: 1px solid rgba(255,255,255,0.12);
    border-radius: 10px;
    padding: 6px 10px;
}}

QProgressBar {{
    border: 1px solid rgba(255,255,255,0.10);
    border-radius: 10px;
    background: rgba(255,255,255,0.06);
    text-align: center;
    height: 20px;
}}
QProgressBar::chunk {{
    border-radius: 10px;
    background: {OK_COLOR};
}}
"""


def card_qss(radius: int = 16) -> str:
    return f"""
        QFrame {{
            background: rgba(255,255,255,0.05);
            border: 1px solid rgba(255,255,255,0.08);
            border-radius: {radius}px;
        }}
    """


def button_qss(rgb: str = "255,255,255", alpha: float = 0.08) -> str:
    return f"""
        QPushButton {{
            background: rgba({rgb},{alpha});
            border: 1px solid rgba({rgb},{min(1.0, alpha * 2):.2f});
            border-radius: 14px;
            padding: 12px 18px;
            font-weight: 750;
        }}
        QPushButton:hover {{ background: rgba({rgb},{min(1.0, alpha + 0.06):.2f}); }}
        QPushButton:pressed {{ background: rgba({rgb},{min(1.0, alpha + 0.12):.2f}); }}
        QPushButton:disabled {{
            background: rgba(255,255,255,0.03);
            border: 1px solid rgba(255,255,255,0.06);
            color: rgba(231,238,247,0.35);
        }}
    """
