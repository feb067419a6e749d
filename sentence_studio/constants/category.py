DEFAULT_CATEGORY_COLOR = "#3b82f6"

DIFFICULTY_LEVELS = ["easy", "medium", "hard"]
DEFAULT_DIFFICULTY = "medium"

PRESET_CATEGORIES = [
    {
        "name": "Daily Conversation",
        "description": "Everyday phrases for common situations",
        "color": "#3b82f6",
    },
    {
        "name": "Business English",
        "description": "Expressions for meetings, e-mails and negotiations",
        "color": "#10b981",
    },
    {
        "name": "Academic English",
        "description": "English used in academic writing and discussion",
        "color": "#f59e0b",
    },
    {
        "name": "Travel English",
        "description": "Phrases for airports, hotels, restaurants and directions",
        "color": "#ef4444",
    },
    {
        "name": "Expressing Feelings",
        "description": "Talking about emotions and how you feel",
        "color": "#8b5cf6",
    },
    {
        "name": "Technology English",
        "description": "Vocabulary and phrasing from the tech industry",
        "color": "#06b6d4",
    },
]
