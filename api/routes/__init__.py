"""API routes package"""

from . import users, food_items, alerts, recipes, cron, health

__all__ = ["users", "food_items", "alerts", "recipes", "cron", "health"]
