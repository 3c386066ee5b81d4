"""
Brewprint Backend — Models Package
===================================

What:  Registers every ORM model and maps collection names to them.
Why a name registry: services address the store by collection name
       ("beans", "recipes", ...), exactly as the snapshot format does.
"""

from typing import Dict, Type

from brewprint.models.base import OwnedRecordMixin
from brewprint.models.equipment import Bean, Brewer, Grinder, WaterProfile
from brewprint.models.organization import Folder, FolderMembership, Tag, TagMembership
from brewprint.models.recipe import Recipe

# ── Collection Names ──────────────────────────────────────────────────────
BEANS = "beans"
GRINDERS = "grinders"
BREWERS = "brewers"
WATER_PROFILES = "water_profiles"
RECIPES = "recipes"
FOLDERS = "folders"
TAGS = "tags"
FOLDER_MEMBERSHIPS = "folder_memberships"
TAG_MEMBERSHIPS = "tag_memberships"

COLLECTION_MODELS: Dict[str, Type[OwnedRecordMixin]] = {
    BEANS: Bean,
    GRINDERS: Grinder,
    BREWERS: Brewer,
    WATER_PROFILES: WaterProfile,
    RECIPES: Recipe,
    FOLDERS: Folder,
    TAGS: Tag,
    FOLDER_MEMBERSHIPS: FolderMembership,
    TAG_MEMBERSHIPS: TagMembership,
}

# The seven primary entity collections (memberships excluded)
ENTITY_COLLECTIONS = (BEANS, GRINDERS, BREWERS, WATER_PROFILES, RECIPES, FOLDERS, TAGS)

__all__ = [
    "Bean",
    "Brewer",
    "Grinder",
    "WaterProfile",
    "Recipe",
    "Folder",
    "Tag",
    "FolderMembership",
    "TagMembership",
    "COLLECTION_MODELS",
    "ENTITY_COLLECTIONS",
    "BEANS",
    "GRINDERS",
    "BREWERS",
    "WATER_PROFILES",
    "RECIPES",
    "FOLDERS",
    "TAGS",
    "FOLDER_MEMBERSHIPS",
    "TAG_MEMBERSHIPS",
]
