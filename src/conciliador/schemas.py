"""Esquema Pydantic del sobre de canal recibido por el motor.

El esquema es deliberadamente laxo: sólo fija la forma del sobre. Las reglas
de dominio (claves de cluster, geografía, ubicación, votos) las aplica
``conciliador.core.validation`` con errores tipados.

English:
    Pydantic schema for the channel envelope. It only pins down the envelope
    shape; domain rules are enforced by ``conciliador.core.validation`` with
    typed errors.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError


class ChannelPayload(BaseModel):
    """Sobre de canal: identificador, nombre y candidatos crudos.

    English: Channel envelope: id, name and raw candidates.
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[Union[str, int]] = None
    name: Optional[Any] = None
    candidates: Optional[List[Dict[str, Any]]] = None

    def to_mapping(self) -> Dict[str, Any]:
        return self.model_dump()


def _parse_payload(data: Union[dict, bytes, str, Path]) -> Dict[str, Any]:
    """Parsea dict, bytes, texto JSON o ruta a dict.

    English: Parse a dict, bytes, JSON text or file path into a dict.
    """
    if isinstance(data, Path):
        try:
            data = data.read_bytes()
        except OSError as exc:
            raise ValueError(f"Cannot read channel file {data}: {exc}") from exc
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError("Payload is not valid UTF-8") from exc
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise ValueError("Payload is not valid JSON") from exc
    if isinstance(data, dict):
        return data
    raise ValueError("Channel payload must be a JSON object")


def load_channel(data: Union[dict, bytes, str, Path]) -> ChannelPayload:
    """Carga y valida la forma del sobre de canal.

    English: Load and shape-check a channel envelope.
    """
    payload = _parse_payload(data)
    try:
        return ChannelPayload.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValueError(f"Channel payload validation failed: {exc}") from exc
