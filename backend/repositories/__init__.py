from .gazetteer import GazetteerRepository, name_key
from .streets import StreetRangesRepository
from . import models

__all__ = ["GazetteerRepository", "StreetRangesRepository", "name_key", "models"]
