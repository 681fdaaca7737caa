"""
Resolution Manifest v1 — rastreabilidade de resoluções no values-stack.

O Manifest consolida, de forma determinística e auditável:
    - metadados da resolução (run, alvo, versão da ferramenta)
    - entradas semânticas (hash das settings, camadas com origem e hash)
    - estado incremental dos estágios
    - saídas (hash dos values, provenance, overrides, validação)
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - A ordem do Event Log reflete a ordem real de execução
    - O Manifest é serializável e reconstruível (round-trip)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O formato de persistência é JSON determinístico
    - As funções aceitam tanto `ResolutionManifest` quanto sua forma em dict;
      o dict recebido é sincronizado in-place

Limites explícitos:
    - Não executa a resolução
    - Não decide políticas de execução (fail-fast, skip)
    - Não realiza migração de versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union


ManifestLike = Union["ResolutionManifest", Dict[str, Any]]


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """
    Normaliza um timestamp para timezone-aware em UTC.

    Timestamps timezone-naive são assumidos como UTC; os demais são
    convertidos.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    """Duração em milissegundos, truncada em zero."""
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class ResolutionManifest:
    """
    Manifest v1 — registro de uma resolução de values.

    Campos principais:
        - run: run_id, started_at, tool_version, environment, region
        - inputs: settings_hash e camadas selecionadas (nome, escopo, origem, hash)
        - stages: estado incremental de cada estágio
        - outputs: values_hash, provenance, overrides, validation, ok
        - events: Event Log ordenado

    Invariantes:
        - `stages` é sempre um dicionário indexado por stage_id
        - `events` é sempre uma lista ordenada
        - A estrutura completa é serializável
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    stages: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    outputs: Dict[str, Any] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Cópia serializável e independente do estado interno."""
        return json.loads(
            json.dumps(
                {
                    "run": self.run,
                    "inputs": self.inputs,
                    "stages": self.stages,
                    "outputs": self.outputs,
                    "events": self.events,
                },
                default=str,
            )
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResolutionManifest":
        """
        Reconstrói um Manifest a partir de sua representação em dicionário.

        Campos ausentes são inicializados vazios; não há validação semântica.
        """
        return cls(
            run=dict(data.get("run", {}) or {}),
            inputs=dict(data.get("inputs", {}) or {}),
            stages={k: dict(v) for k, v in (data.get("stages", {}) or {}).items()},
            outputs=dict(data.get("outputs", {}) or {}),
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    tool_version: str,
    settings_hash: str,
    environment: Optional[str] = None,
    region: Optional[str] = None,
) -> ResolutionManifest:
    """
    Cria o Manifest inicial de uma resolução.

    ⚠️ Esta função **não emite eventos**. O Event Log inicia vazio e só é
    preenchido por `add_event`, `stage_started`, `stage_finished` ou
    `stage_failed`.
    """
    started_at = _ensure_tzaware_utc(started_at)
    return ResolutionManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "tool_version": tool_version,
            "environment": environment,
            "region": region,
        },
        inputs={
            "settings_hash": settings_hash,
            "layers": [],
        },
        stages={},
        outputs={},
        events=[],
    )


def _get_manifest(manifest: ManifestLike) -> Tuple[ResolutionManifest, bool]:
    if isinstance(manifest, ResolutionManifest):
        return manifest, False
    return ResolutionManifest.from_dict(manifest), True


def _sync(manifest: ManifestLike, m: ResolutionManifest, is_dict: bool) -> None:
    if is_dict:
        manifest.clear()  # type: ignore[union-attr]
        manifest.update(m.to_dict())  # type: ignore[union-attr]


def add_event(
    manifest: ManifestLike,
    *,
    event_type: str,
    ts: datetime,
    stage_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Adiciona um evento explícito ao Event Log.

    Cada chamada adiciona exatamente um evento; eventos não são reordenados
    nem deduplicados.
    """
    m, is_dict = _get_manifest(manifest)
    m.events.append(
        {
            "event_type": event_type,
            "timestamp": _iso(ts),
            "stage_id": stage_id,
            "payload": dict(payload or {}),
        }
    )
    _sync(manifest, m, is_dict)


def record_input(manifest: ManifestLike, *, key: str, value: Any) -> None:
    """Registra uma entrada semântica (ex.: camadas selecionadas)."""
    m, is_dict = _get_manifest(manifest)
    m.inputs[key] = value
    _sync(manifest, m, is_dict)


def record_output(manifest: ManifestLike, *, key: str, value: Any) -> None:
    """Registra uma saída da resolução (ex.: values_hash, provenance)."""
    m, is_dict = _get_manifest(manifest)
    m.outputs[key] = value
    _sync(manifest, m, is_dict)


def stage_started(manifest: ManifestLike, *, stage_id: str, ts: datetime) -> None:
    """Marca o estágio como `running` e emite `stage_started`."""
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)
    m.stages.setdefault(stage_id, {})
    m.stages[stage_id].update(
        {
            "stage_id": stage_id,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(m, event_type="stage_started", ts=ts, stage_id=stage_id)
    _sync(manifest, m, is_dict)


def stage_finished(
    manifest: ManifestLike,
    *,
    stage_id: str,
    ts: datetime,
    result: Dict[str, Any],
) -> None:
    """
    Registra a conclusão (success/skipped) de um estágio.

    A duração é calculada a partir de `started_at`; estágios nunca
    iniciados (ex.: skipped) têm duração zero.
    """
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)
    s = m.stages.setdefault(stage_id, {"stage_id": stage_id})

    started_iso = s.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts

    status = result.get("status", "success")
    s.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "summary": result.get("summary"),
            "metrics": result.get("metrics", {}) or {},
            "warnings": result.get("warnings", []) or [],
        }
    )
    add_event(
        m,
        event_type="stage_finished",
        ts=ts,
        stage_id=stage_id,
        payload={"status": status, "duration_ms": s.get("duration_ms", 0)},
    )
    _sync(manifest, m, is_dict)


def stage_failed(
    manifest: ManifestLike,
    *,
    stage_id: str,
    ts: datetime,
    error: Dict[str, Any],
) -> None:
    """Marca o estágio como `failed` e associa o ErrorPayload serializado."""
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)
    s = m.stages.setdefault(stage_id, {"stage_id": stage_id})

    started_iso = s.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts

    s.update(
        {
            "status": "failed",
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "error": dict(error),
        }
    )
    add_event(
        m,
        event_type="stage_failed",
        ts=ts,
        stage_id=stage_id,
        payload={"error_type": error.get("type"), "message": error.get("message")},
    )
    _sync(manifest, m, is_dict)


def save_manifest(manifest: ManifestLike, path: Path) -> None:
    """
    Persiste o Manifest em JSON determinístico (indent 2, chaves ordenadas).

    Raises:
        OSError: falha ao criar diretórios ou escrever o arquivo.
    """
    data = manifest.to_dict() if isinstance(manifest, ResolutionManifest) else manifest
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")


def load_manifest(path: Path) -> ResolutionManifest:
    """Carrega um Manifest persistido por `save_manifest`."""
    raw = Path(path).read_text(encoding="utf-8")
    return ResolutionManifest.from_dict(json.loads(raw))
