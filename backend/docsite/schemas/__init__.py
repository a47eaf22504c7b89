from docsite.schemas.github import ApiModule, LatestUpdate, Repository

__all__ = ["ApiModule", "LatestUpdate", "Repository"]
