"""Design tokens for the EdgePaste UI (single source of truth).
Do not change values here without updating the theme template and tests.
"""

# Colors
ACCENT = "#646CFF"
ACCENT_HOVER = "#7C83FF"
TEXT_DEFAULT = "#E4E6EB"
TEXT_MUTED = "#9AA0AA"
STATUS_OK = "#31F37A"
STATUS_FAIL = "#FF6B6B"
STATUS_PENDING = "#FFB800"
BG_WINDOW = "#1E1F24"
BG_CARD_RGBA = "rgba(36,38,46,0.95)"
BORDER_PASTE = "rgba(100,108,255,0.80)"
BORDER_CANVAS = "#CCCCCC"
GROOVE_BG = "rgba(255,255,255,0.15)"

# Radii (pixels)
RADIUS_CARD = 12
RADIUS_PASTE = 8
RADIUS_CANVAS = 4
RADIUS_BUTTON = 8

# Fonts
FONT_STACK = "'Inter', 'Segoe UI', Arial, sans-serif"
TITLE_SIZE = 22
SECTION_SIZE = 15
FONT_SIZE = 12

# Spacing
PASTE_PADDING = 20
BUTTON_PADDING_Y = 6
BUTTON_PADDING_X = 14
