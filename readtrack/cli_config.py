"""
CLI Configuration Manager for the ReadTrack CLI
Manages user preferences, API settings and the stored access token
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

console = Console(stderr=True)

CONFIG_DIR_ENV = "READTRACK_CONFIG_DIR"

DEFAULT_CONFIG: Dict[str, Any] = {
    "preferences": {
        "output": "plain",
    },
    "api_settings": {
        "base_url": None,
        "timeout": 10,
    },
    "ui_settings": {
        "show_emojis": True,
        "confirm_deletions": True,
    },
    "auth": {
        "access_token": None,
    },
}


class CLIConfig:
    """Manages CLI configuration and user preferences."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir or os.environ.get(CONFIG_DIR_ENV) or Path.home() / ".readtrack")
        self.config_file = self.config_dir / "config.json"
        self.config: Dict[str, Any] = {}
        self.load_config()

    def load_config(self) -> None:
        """Load configuration from file or fall back to defaults."""
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    self.config = json.load(f)
                return
            except (OSError, json.JSONDecodeError) as e:
                console.print(f"[yellow]⚠️  Could not load config: {e}[/]")
        self.config = copy.deepcopy(DEFAULT_CONFIG)

    def save_config(self) -> None:
        """Save current configuration to file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self.config, f, indent=2, ensure_ascii=False)
        except OSError as e:
            console.print(f"[red]❌ Could not save config: {e}[/]")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'ui_settings.confirm_deletions')."""
        value: Any = self.config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation."""
        keys = key.split(".")
        config = self.config

        # Navigate to the parent dictionary
        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        self.save_config()

    def reset_to_default(self) -> None:
        """Reset configuration to default values, keeping nothing."""
        self.config = copy.deepcopy(DEFAULT_CONFIG)
        self.save_config()

    def show_config(self) -> None:
        """Display current configuration."""
        from rich.tree import Tree

        tree = Tree("📄 ReadTrack CLI Configuration", style="bold blue")
        for section, values in self.config.items():
            section_tree = tree.add(f"[bold cyan]{section.title()}[/]")
            if isinstance(values, dict):
                for key, value in values.items():
                    if key == "access_token" and value:
                        value = "********"
                    section_tree.add(f"[yellow]{key}[/]: [white]{value}[/]")
            else:
                section_tree.add(f"[white]{values}[/]")

        Console().print(tree)
        Console().print(f"\n[dim]Config file: {self.config_file}[/]")
