"""
Brewprint Backend — Version Graph
==================================

What:  Version labels, branch drafts and experimentation chains for recipes.
How:   Parent links are plain `parent_id` values resolved through store
       lookups; no recipe ever holds a reference to another recipe object.
Who:   Called by RecipeService.

Graph Shape:
    v1 (root)
    ├── v2   parent_id = root.id
    └── v2   a second branch of the same root gets the same label
        └── v3   reachable only by resolving a chain on the v2 node

Children are only ever created from an existing row, so the graph has no
cycles. Deleting a parent leaves its children with a dangling parent_id.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from brewprint.exceptions import NotFoundError
from brewprint.models import RECIPES
from brewprint.schemas.recipe import NewRecipeDraft, RecipeOverrides, RecipeStatus
from brewprint.services.record_store import RecordStore

logger = logging.getLogger(__name__)

VERSION_LABEL = re.compile(r"^v(\d+)$")

# Label used whenever the current one can't be parsed
FALLBACK_VERSION = "v2"

# Authorable fields a branch inherits from its parent. Recorded results
# (actual_*, rating, tasting/brewing notes, brew_date) stay behind.
INHERITED_FIELDS = (
    "name",
    "description",
    "method",
    "difficulty",
    "bean_id",
    "grinder_id",
    "brewer_id",
    "water_profile_id",
    "parameters",
    "target_metrics",
    "steps",
    "version_notes",
)

# Inherited fields a branch can never clear; an explicit null keeps the parent value
REQUIRED_FIELDS = frozenset({"name", "method", "difficulty", "parameters", "steps"})


class VersionGraph:
    """Stateless; the store is passed into the one method that needs it."""

    def next_version_label(self, current: Optional[str]) -> str:
        """
        `v<n>` → `v<n+1>`. Anything else → "v2".

        Never raises: a hand-edited or corrupted label must not block
        iteration.
        """
        match = VERSION_LABEL.match(current or "")
        if match is None:
            logger.debug("Unparseable version label %r, falling back to %s", current, FALLBACK_VERSION)
            return FALLBACK_VERSION
        return f"v{int(match.group(1)) + 1}"

    def branch_from(
        self,
        parent: Mapping[str, Any],
        overrides: Optional[RecipeOverrides] = None,
    ) -> NewRecipeDraft:
        """
        Build the draft for a new iteration of `parent`.

        Args:
            parent: Stored recipe record (dict) being branched.
            overrides: Fields the caller explicitly set. Unset fields are
                inherited. An explicit null clears an optional field and is
                ignored for required ones.

        Returns:
            NewRecipeDraft with parent_id, the next version label, status
            'experimenting', and "<parent name> (<version>)" as the default name.
        """
        sent = overrides.model_dump(exclude_unset=True) if overrides else {}
        changes: Dict[str, Any] = {
            key: value for key, value in sent.items()
            if value is not None or key not in REQUIRED_FIELDS
        }
        version = self.next_version_label(parent.get("version"))

        fields = {name: parent.get(name) for name in INHERITED_FIELDS}
        fields.update(changes)
        if not changes.get("name"):
            fields["name"] = f"{parent['name']} ({version})"

        return NewRecipeDraft(
            **fields,
            owner_id=parent["owner_id"],
            parent_id=parent["id"],
            version=version,
            status=RecipeStatus.EXPERIMENTING,
        )

    async def resolve_chain(
        self,
        store: RecordStore,
        root_id: str,
        owner_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Root first, then its direct children by ascending creation time.

        One level deep only; grandchildren are reached by resolving the
        chain of a child.

        Raises:
            NotFoundError: root missing, or owned by someone other than `owner_id`
        """
        root = await store.get_by_id(RECIPES, root_id)
        if owner_id is not None and root["owner_id"] != owner_id:
            raise NotFoundError(resource=RECIPES, resource_id=root_id)

        children = await store.query(
            RECIPES,
            {"parent_id": root_id, "owner_id": root["owner_id"]},
            order_by="created_at",
        )
        return [root, *children]


# ── Singleton Instance ────────────────────────────────────────────────────
version_graph = VersionGraph()
