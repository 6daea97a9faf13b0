"""Konfigurationsmanager: Laden, Speichern und Anzeigen der Schulkonfiguration.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich import box
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import SchoolConfig

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Kiteschule: Whiteboard-Konfiguration
# Alle Uhrzeiten: HH:MM (UTC)
# Erstellt: {date.today().isoformat()}
# ============================================
"""

# Feld → Kommentar oberhalb des Schlüssels
_FIELD_COMMENTS = {
    "default_location": "Standardwerte für Events aus der Datenbank",
    "time_step_minutes": "Whiteboard-Bearbeitung (+/- Buttons)",
    "working_day_start": "Arbeitstag (für freie Slots)",
    "overlap_policy": "Überschneidungen: clamp = kappen, reject = ablehnen",
    "duration_cap_one": "Dauer neuer Events je Paket-Kapazität (Minuten)",
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "school_config.yaml"

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> SchoolConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'python main.py config init' aus."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return SchoolConfig.model_validate(dict(raw or {}))
        except Exception as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    def load_or_default(self, path: Optional[Path] = None) -> SchoolConfig:
        """Lädt die Config, fällt ohne Datei auf die Defaults zurück."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            from config.defaults import default_school_config
            return default_school_config()
        return self.load(target)

    # ─── Speichern ───

    def save(self, config: SchoolConfig, path: Optional[Path] = None) -> None:
        """Speichere Config als YAML mit deutschen Kommentaren."""
        target = path or self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)

        console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")

    def _build_commented_yaml(self, config: SchoolConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)
        for field, comment in _FIELD_COMMENTS.items():
            if field in cm:
                cm.yaml_set_comment_before_after_key(field, before=f"\n─── {comment} ───")
        return cm

    # ─── Anzeige ───

    def show(self, config: SchoolConfig) -> None:
        """Zeigt alle Parameter als Rich-Tabelle."""
        table = Table(title=config.school_name, box=box.ROUNDED)
        table.add_column("Parameter", style="bold")
        table.add_column("Wert")
        for k, v in config.model_dump(mode="json").items():
            table.add_row(k, str(v))
        console.print(table)
