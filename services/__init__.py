"""Services package - Data service layer"""

from services.meal_data_service import MealDataService

__all__ = [
    "MealDataService",
]
