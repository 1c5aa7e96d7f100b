"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/conciliador/config.py`.
Configuración validada del motor de conciliación.

Componentes:
  - ConciliadorSettings / load_config
  - StackStyleConfig / load_stack_style

Notas:
- Mantener esta cabecera sincronizada con cambios estructurales del archivo.

======================== ENGLISH ========================
File: `src/conciliador/config.py`.
Validated configuration for the reconciliation engine.

Components:
  - ConciliadorSettings / load_config
  - StackStyleConfig / load_stack_style

Notes:
- Keep this header in sync with structural changes in the file.
"""

# Config Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) Variables de entorno del motor
#   2) Estilo de pilas desde YAML
#
# EN: Quick index
#   1) Engine environment settings
#   2) Stack style from YAML
#
# Secciones / Sections:
#   - Configuración / Configuration
#   - Estilo / Style

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from conciliador.core.audit import DEFAULT_CAPACITY, DEFAULT_RECENT
from conciliador.core.levels import LEVELS
from conciliador.core.stacks import DEFAULT_LEVEL_COLORS, StackStyle
from conciliador.core.validation import UNKNOWN_SENTINEL

ColorChannel = Annotated[int, Field(ge=0, le=255)]
RGBConfig = Tuple[ColorChannel, ColorChannel, ColorChannel]


class ConciliadorSettings(BaseSettings):
    """Variables de entorno y archivo .env del motor.

    English: Environment variables and .env file for the engine.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONCILIADOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[Path] = None
    AUDIT_CAPACITY: int = Field(default=DEFAULT_CAPACITY, ge=1)
    AUDIT_RECENT: int = Field(default=DEFAULT_RECENT, ge=1)
    UNKNOWN_SENTINEL: str = Field(default=UNKNOWN_SENTINEL, min_length=1)
    STYLE_PATH: Optional[Path] = None
    MAX_WORKERS: Optional[int] = Field(default=None, ge=1)

    @field_validator("LOG_LEVEL")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {value}")
        return normalized


def load_config(**overrides: Any) -> ConciliadorSettings:
    """/** Carga y valida configuración, fallando con detalle. / Load and validate configuration, failing with details. **/"""
    try:
        return ConciliadorSettings(**overrides)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


class StackStyleConfig(BaseModel):
    """Esquema YAML del estilo de pilas.

    English: YAML schema for the stack style.
    """

    level_colors: Dict[str, RGBConfig] = Field(default_factory=dict)
    fallback_color: RGBConfig = (128, 128, 128)
    height_per_candidate: float = Field(default=0.1, gt=0)
    max_height: float = Field(default=2.0, gt=0)
    footprint: float = Field(default=0.05, gt=0)
    vote_scale: float = Field(default=1000.0, gt=0)
    intensity_floor: float = Field(default=0.3, ge=0, le=1)
    alpha: ColorChannel = 200
    opacity: float = Field(default=0.8, ge=0, le=1)

    @field_validator("level_colors")
    @classmethod
    def _known_levels(cls, value: Dict[str, RGBConfig]) -> Dict[str, RGBConfig]:
        unknown = sorted(set(value) - set(LEVELS))
        if unknown:
            raise ValueError(f"Unknown levels in level_colors: {', '.join(unknown)}")
        return value

    def to_style(self) -> StackStyle:
        colors = dict(DEFAULT_LEVEL_COLORS)
        colors.update({level: tuple(rgb) for level, rgb in self.level_colors.items()})
        return StackStyle(
            level_colors=colors,
            fallback_color=tuple(self.fallback_color),
            height_per_candidate=self.height_per_candidate,
            max_height=self.max_height,
            footprint=self.footprint,
            vote_scale=self.vote_scale,
            intensity_floor=self.intensity_floor,
            alpha=self.alpha,
            opacity=self.opacity,
        )


def load_stack_style(path: Optional[Path]) -> StackStyle:
    """Carga el estilo de pilas desde YAML; sin archivo usa el estilo por defecto.

    El YAML puede traer las claves en la raíz o bajo ``stack_style``.

    English:
        Load the stack style from YAML; without a file the default style is
        used. Keys may sit at the root or under ``stack_style``.
    """
    if path is None or not Path(path).exists():
        return StackStyle()

    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid stack style YAML in {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise ValueError(f"Stack style in {path} must be a mapping")
    section = payload.get("stack_style", payload)
    if not isinstance(section, dict):
        raise ValueError(f"stack_style in {path} must be a mapping")

    try:
        return StackStyleConfig.model_validate(section).to_style()
    except ValidationError as exc:
        raise ValueError(f"Invalid stack style in {path}: {exc}") from exc
