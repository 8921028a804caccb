"""Load settings.yaml and catalog.yaml into typed dataclasses."""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from roundtable.models import Goal, Role
from roundtable.prompts import PromptsConfig

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"
_CATALOG_PATH = Path(__file__).parent / "catalog.yaml"


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None


@dataclass
class RoutingConfig:
    routes: dict[str, list[str]] = field(default_factory=dict)   # function class -> provider names
    tiers: dict[str, list[str]] = field(default_factory=dict)    # tier -> allowed provider names


@dataclass
class DefaultsConfig:
    language: str = "nl"
    tier: str = "gold"
    user_id: str = "anonymous"
    output_dir: Path = Path("./output")


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    models: dict[str, ModelConfig]
    routing: RoutingConfig
    prompts: PromptsConfig = field(default_factory=PromptsConfig)
    available_providers: set[str] = field(default_factory=set)


@dataclass
class Catalog:
    goals: dict[str, Goal] = field(default_factory=dict)
    roles: dict[str, Role] = field(default_factory=dict)
    goal_categories: dict[str, str] = field(default_factory=dict)   # id -> display name

    def goal(self, goal_id: str) -> Goal:
        if goal_id not in self.goals:
            raise KeyError(f"Unknown goal: {goal_id}")
        return self.goals[goal_id]

    def role(self, role_id: str) -> Role:
        """Return a fresh copy of the catalog role, safe to mutate inside a session."""
        if role_id not in self.roles:
            raise KeyError(f"Unknown role: {role_id}")
        r = self.roles[role_id]
        return Role(
            id=r.id,
            name=r.name,
            description=r.description,
            focus_area=r.focus_area,
            category=r.category,
            enthusiasm_level=r.enthusiasm_level,
            selected_styles=list(r.selected_styles),
        )


def _load_prompts(raw: dict | None) -> PromptsConfig:
    known = {f.name for f in fields(PromptsConfig)}
    overrides = {}
    for key, value in (raw or {}).items():
        if key not in known:
            logger.warning("Ignoring unknown prompt template '%s' in settings", key)
            continue
        overrides[key] = str(value)
    return PromptsConfig(**overrides)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs missing API keys but does not raise; callers check
    available_providers count.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw.get("defaults", {})
    defaults = DefaultsConfig(
        language=str(defaults_raw.get("language", "nl")),
        tier=str(defaults_raw.get("tier", "gold")),
        user_id=str(defaults_raw.get("user_id", "anonymous")),
        output_dir=Path(defaults_raw.get("output_dir", "./output")),
    )

    routing_raw = dict(raw.get("routing", {}))
    tiers_raw = routing_raw.pop("tiers", {}) or {}
    routing = RoutingConfig(
        routes={k: list(v) for k, v in routing_raw.items()},
        tiers={k: list(v) for k, v in tiers_raw.items()},
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s, set %s in .env",
                provider_name,
                model_raw["api_key_env"],
            )

    return AppConfig(
        defaults=defaults,
        models=models,
        routing=routing,
        prompts=_load_prompts(raw.get("prompts")),
        available_providers=available_providers,
    )


def load_catalog(catalog_path: Path = _CATALOG_PATH) -> Catalog:
    """Load goal categories and organisational roles from catalog.yaml."""
    if not catalog_path.exists():
        raise FileNotFoundError(f"Catalog file not found: {catalog_path}")

    with catalog_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    catalog = Catalog()
    for category_id, category_raw in raw.get("goal_categories", {}).items():
        catalog.goal_categories[category_id] = str(category_raw["name"])
        for goal_id, goal_raw in category_raw.get("goals", {}).items():
            catalog.goals[goal_id] = Goal(
                id=goal_id,
                name=str(goal_raw["name"]),
                description=str(goal_raw["description"]),
                category=category_id,
            )

    for role_id, role_raw in raw.get("roles", {}).items():
        catalog.roles[role_id] = Role(
            id=role_id,
            name=str(role_raw["name"]),
            description=str(role_raw["description"]),
            focus_area=str(role_raw["focus_area"]),
            category=str(role_raw["category"]),
            enthusiasm_level=int(role_raw.get("enthusiasm_level", 3)),
        )

    logger.debug("Catalog loaded: %d goals, %d roles", len(catalog.goals), len(catalog.roles))
    return catalog
