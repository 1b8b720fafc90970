"""
Configuration management for SiteForge
"""

import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field, asdict


@dataclass
class AttemptPolicy:
    """Model, timeout and prompt variant used for one attempt number"""
    model_tier: str
    model: str
    timeout_seconds: float
    max_tokens: int = 4096
    prompt_variant: str = "full"  # 'full' or 'compact'


def _default_attempt_policies() -> List[AttemptPolicy]:
    return [
        AttemptPolicy("fast", "gpt-4o-mini", 30.0, 4096, "full"),
        AttemptPolicy("standard", "gpt-4-turbo", 60.0, 4096, "full"),
        AttemptPolicy("capable", "gpt-4o", 90.0, 4096, "compact"),
    ]


@dataclass
class APIConfig:
    """Configuration for the completion backend"""
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_timeout: float = 120.0
    disable_proxy: bool = False
    # Skip the backend entirely and serve fallback templates
    offline_mode: bool = False
    # Expected key prefix; empty string disables the check (custom endpoints)
    api_key_prefix: str = "sk-"

    # Rate limiting settings
    max_requests_per_minute: int = 60
    max_concurrent_requests: int = 1


@dataclass
class GenerationConfig:
    """Retry, backoff and pacing policy for generation"""
    attempt_policies: List[AttemptPolicy] = field(default_factory=_default_attempt_policies)
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    consecutive_timeout_limit: int = 2
    temperature: float = 0.6
    inter_chunk_delay: float = 1.0
    # Per-file character cap when a project snapshot is embedded in a prompt
    snapshot_max_file_chars: int = 4000

    def policy_for(self, attempt_number: int) -> AttemptPolicy:
        """Policy row for a 1-based attempt number; attempts past the table reuse the last row"""
        index = min(max(attempt_number, 1), len(self.attempt_policies)) - 1
        return self.attempt_policies[index]


@dataclass
class ClassificationConfig:
    """Keyword lists and thresholds for the heuristic classifiers"""
    chunking_word_threshold: int = 50

    complexity_keywords: List[str] = field(default_factory=lambda: [
        "multi-page", "multiple pages", "4+ pages", "5+ pages", "6+ pages",
        "e-commerce", "ecommerce", "shopping cart", "user authentication",
        "authentication", "dashboard", "admin panel", "blog system", "cms",
        "pricing table", "testimonials", "contact form", "newsletter",
        "search functionality", "social media", "integration", "payment",
        "checkout",
    ])

    # Page name -> regex, matched case-insensitively in table order
    page_patterns: Dict[str, str] = field(default_factory=lambda: {
        "Home": r"\b(?:home|landing|main)\s*page\b",
        "About": r"\babout\b",
        "Services": r"\bservices?\s*page\b|\bour\s+services\b",
        "Products": r"\bproducts?\s*(?:page|catalog|listing)\b",
        "Portfolio": r"\bportfolio\s*page\b",
        "Gallery": r"\bgallery\s*page\b",
        "Blog": r"\bblog\s*page\b|\bblog\b(?!\s*system)",
        "News": r"\bnews\b",
        "Pricing": r"\bpricing\b(?!\s*table)|\bplans\s*page\b",
        "Testimonials": r"\btestimonials?\s*page\b",
        "Team": r"\bteam\s*page\b|\bour\s+team\b|\bstaff\b",
        "Login": r"\blog\s*in\s*page\b|\blogin\s*page\b|\bsign\s*in\b",
        "Signup": r"\bsign\s*up\s*page\b|\bsignup\s*page\b|\bregister\b",
        "Dashboard": r"\bdashboard\s*page\b",
        "Profile": r"\bprofile\s*page\b",
        "Careers": r"\bcareers?\b|\bjobs?\s*page\b",
        "FAQ": r"\bfaqs?\b|\bhelp\s*page\b",
        "Contact": r"\bcontact\b(?!\s*form)|\bcontact\s*page\b",
        "Privacy": r"\bprivacy\b",
        "Terms": r"\bterms\b",
    })

    # Feature name -> regex
    feature_patterns: Dict[str, str] = field(default_factory=lambda: {
        "E-commerce": r"\be-?commerce\b|\bonline\s*store\b",
        "Shopping Cart": r"\bshopping\s*cart\b|\bcheckout\b",
        "User Authentication": r"\buser\s*authentication\b|\blogin\s*system\b|\buser\s*accounts?\b|\bauthentication\b",
        "Search": r"\bsearch\s*(?:functionality|feature|bar)\b",
        "Contact Form": r"\bcontact\s*form\b",
        "Newsletter Signup": r"\bnewsletter\b",
        "Social Media Integration": r"\bsocial\s*media\b|\bsocial\s*links\b",
        "Responsive Design": r"\bresponsive\b|\bmobile[\s-]*friendly\b",
        "Admin Panel": r"\badmin\s*panel\b",
        "Dashboard": r"\bdashboard\b",
        "CMS": r"\bcms\b",
        "Payment Integration": r"\bpayments?\b",
        "Blog System": r"\bblog\s*system\b",
        "Comment System": r"\bcomments?\s*system\b|\bcomments?\s*section\b",
        "Image Gallery": r"\b(?:image|photo)\s*gallery\b",
        "Testimonials": r"\btestimonials?\b|\breviews?\s*section\b",
        "Pricing Table": r"\bpricing\s*table\b|\bsubscription\s*plans?\b",
    })

    default_pages: List[str] = field(default_factory=lambda: ["Home", "About", "Contact"])

    new_project_keywords: List[str] = field(default_factory=lambda: [
        "from scratch", "start fresh", "start over", "completely new",
        "brand new", "make a new", "new project", "new website", "new site",
    ])
    modification_keywords: List[str] = field(default_factory=lambda: [
        "change", "modify", "update", "edit", "fix", "improve", "enhance",
        "remove", "delete", "replace", "adjust", "tweak", "rename",
    ])
    addition_keywords: List[str] = field(default_factory=lambda: [
        "add", "include", "also", "insert", "append", "another",
        "additional", "extra", "create new",
    ])


@dataclass
class DataConfig:
    """Configuration for data storage"""
    projects_dir: str = "./data/projects"
    output_dir: str = "./data/output"
    # None selects the packaged template asset
    templates_path: Optional[str] = None


@dataclass
class Config:
    """Main configuration class"""
    api: APIConfig = field(default_factory=APIConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    data: DataConfig = field(default_factory=DataConfig)

    @classmethod
    def default(cls) -> 'Config':
        """Defaults with environment overrides applied"""
        config = cls()
        config.api = APIConfig(**_apply_env_overrides({}))
        return config

    @classmethod
    def from_yaml(cls, config_path: str = None) -> 'Config':
        """Load configuration from YAML file"""
        if config_path is None:
            config_path = "config.yaml"

        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            yaml_data = yaml.safe_load(f) or {}

        api_config = _apply_env_overrides(yaml_data.get('api', {}).copy())

        generation_data = yaml_data.get('generation', {}).copy()
        if 'attempt_policies' in generation_data:
            generation_data['attempt_policies'] = [
                AttemptPolicy(**row) for row in generation_data['attempt_policies']
            ]

        return cls(
            api=APIConfig(**api_config),
            generation=GenerationConfig(**generation_data),
            classification=ClassificationConfig(**yaml_data.get('classification', {})),
            data=DataConfig(**yaml_data.get('data', {})),
        )

    def save_to_file(self, path: str):
        """Write the configuration as YAML (the API key is never written)"""
        data = asdict(self)
        data['api'].pop('openai_api_key', None)
        with open(path, 'w') as f:
            yaml.safe_dump(data, f, sort_keys=False)

    def summary(self):
        """Return a human-readable summary of the configuration"""
        policies = ", ".join(
            f"#{i + 1} {p.model_tier}/{p.model} {p.timeout_seconds:.0f}s"
            for i, p in enumerate(self.generation.attempt_policies)
        )
        return {
            'backend': self.api.openai_base_url or "https://api.openai.com/v1",
            'offline_mode': str(self.api.offline_mode),
            'attempts': f"{self.generation.max_attempts} max, policy: {policies}",
            'backoff': f"{self.generation.base_delay}s base, {self.generation.max_delay}s cap",
            'timeouts': f"fallback after {self.generation.consecutive_timeout_limit} consecutive timeouts",
            'rate_limits': f"{self.api.max_requests_per_minute} req/min, {self.api.max_concurrent_requests} concurrent",
            'chunking': f"> {self.classification.chunking_word_threshold} words or "
                        f"{len(self.classification.complexity_keywords)} complexity keywords",
            'storage': f"Projects: {self.data.projects_dir}, Output: {self.data.output_dir}",
        }

    def validate(self):
        """Validate configuration and return list of errors"""
        errors = []

        # 1. API configuration
        if not self.api.offline_mode and not self.api.openai_api_key:
            errors.append("OPENAI_API_KEY must be set unless offline_mode is enabled")
        if self.api.max_requests_per_minute <= 0 or self.api.max_concurrent_requests <= 0:
            errors.append("Rate limits must be positive")

        # 2. Generation policy
        gen = self.generation
        if not gen.attempt_policies:
            errors.append("At least one attempt policy must be configured")
        if gen.max_attempts <= 0:
            errors.append("max_attempts must be positive")
        if gen.consecutive_timeout_limit <= 0:
            errors.append("consecutive_timeout_limit must be positive")
        if gen.base_delay < 0 or gen.max_delay < gen.base_delay:
            errors.append("Backoff delays must satisfy 0 <= base_delay <= max_delay")
        if gen.inter_chunk_delay < 0:
            errors.append("inter_chunk_delay must not be negative")
        for i, policy in enumerate(gen.attempt_policies):
            if policy.timeout_seconds <= 0 or policy.max_tokens <= 0:
                errors.append(f"Attempt policy #{i + 1} needs positive timeout and max_tokens")
            if policy.prompt_variant not in ("full", "compact"):
                errors.append(f"Attempt policy #{i + 1} has unknown prompt_variant '{policy.prompt_variant}'")

        # 3. Classification tables
        cls_cfg = self.classification
        if cls_cfg.chunking_word_threshold <= 0:
            errors.append("chunking_word_threshold must be positive")
        for table_name in ("page_patterns", "feature_patterns"):
            for name, pattern in getattr(cls_cfg, table_name).items():
                try:
                    re.compile(pattern)
                except re.error as e:
                    errors.append(f"{table_name}[{name}] is not a valid regex: {e}")

        return errors


def _apply_env_overrides(api_config: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay API settings from the environment"""

    def _apply_env(var_name: str, key: str, cast=None):
        value = os.getenv(var_name)
        if value is None:
            return
        if cast is not None:
            try:
                value = cast(value)
            except ValueError:
                # Keep original string; validate() surfaces the issue
                pass
        api_config[key] = value

    _apply_env('OPENAI_API_KEY', 'openai_api_key')
    _apply_env('OPENAI_BASE_URL', 'openai_base_url')
    _apply_env('OPENAI_TIMEOUT', 'openai_timeout', float)

    for var_name, key in (('OPENAI_DISABLE_PROXY', 'disable_proxy'), ('SITEFORGE_OFFLINE', 'offline_mode')):
        flag = os.getenv(var_name)
        if flag is not None:
            api_config[key] = flag.lower() in {'1', 'true', 'yes', 'on'}

    return api_config
