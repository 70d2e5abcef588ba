from projectflow.promotion.api.promotion import PromotionController

__all__ = ["PromotionController"]
