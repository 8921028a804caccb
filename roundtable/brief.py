"""Discussion briefs: markdown files with optional YAML front matter.

Example::

    ---
    title: Launch in Germany
    goal: a4
    roles: [ceo, cfo, marketing_specialist]
    language: en
    ---
    We are considering a launch of our product in Germany next spring...
"""

from dataclasses import dataclass, field
from pathlib import Path

import frontmatter


@dataclass
class DiscussionBrief:
    title: str
    description: str
    goal: str | None = None
    roles: list[str] = field(default_factory=list)
    language: str | None = None


def _as_list(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v).strip() for v in value]


def parse_brief(file_path: Path) -> DiscussionBrief:
    """Parse a brief; without a ``title`` the file stem is used."""
    post = frontmatter.load(str(file_path))
    meta = dict(post.metadata)
    return DiscussionBrief(
        title=str(meta.get("title") or file_path.stem.replace("_", " ").replace("-", " ")),
        description=post.content.strip(),
        goal=str(meta["goal"]) if meta.get("goal") else None,
        roles=_as_list(meta.get("roles")),
        language=str(meta["language"]) if meta.get("language") else None,
    )
