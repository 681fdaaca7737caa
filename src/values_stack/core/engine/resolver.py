# src/values_stack/core/engine/resolver.py
"""
Resolver — execução canônica da resolução de values.

Estágios, sempre nesta ordem:

    layers.select → values.merge → expressions.evaluate → schema.validate

Regras:
- Cada estágio produz um StageResult (imutável).
- Falhas são convertidas em ErrorPayload (serializável e acionável); nenhum
  stack trace cru chega ao operador.
- Fail-fast: após uma falha, os estágios seguintes são SKIPPED.
- Estágios desativados por settings (ou sem schema) são SKIPPED.
- Issues de schema só falham a resolução com `validation.fail_on_error`;
  caso contrário viram warnings do estágio.
- Todo estágio é registrado no Manifest (started/finished/failed) e os
  eventos do ResolutionContext são copiados para o Event Log.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from values_stack import __version__
from values_stack.core.config.defaults import default_settings
from values_stack.core.config.hashing import compute_config_hash
from values_stack.core.context import ResolutionContext
from values_stack.core.errors import RESOLVER_CONFIGURATION_ERROR, ErrorPayload, payload_from_exception
from values_stack.core.exceptions import ValuesStackError
from values_stack.core.traceability.manifest import (
    ResolutionManifest,
    add_event,
    create_manifest,
    record_input,
    record_output,
    stage_failed,
    stage_finished,
    stage_started,
)
from values_stack.core.types import StageResult, StageStatus
from values_stack.expressions.context import build_context
from values_stack.expressions.evaluator import Evaluator, has_expression
from values_stack.expressions.nodes import Node
from values_stack.layers.model import Layer, LayerScope
from values_stack.layers.store import LayerStore
from values_stack.merge.engine import MergeResult, OverrideRecord, merge_layers
from values_stack.merge.hashing import compute_values_hash
from values_stack.merge.policy import MergePolicy
from values_stack.validation.errors import ValuesValidationError
from values_stack.validation.report import ValidationReport
from values_stack.validation.schema import check_schema, validate_values


STAGE_LAYERS_SELECT = "layers.select"
STAGE_VALUES_MERGE = "values.merge"
STAGE_EXPRESSIONS_EVALUATE = "expressions.evaluate"
STAGE_SCHEMA_VALIDATE = "schema.validate"

STAGES: List[str] = [
    STAGE_LAYERS_SELECT,
    STAGE_VALUES_MERGE,
    STAGE_EXPRESSIONS_EVALUATE,
    STAGE_SCHEMA_VALIDATE,
]


class ResolverConfigurationError(ValuesStackError):
    """Entrada do resolver inconsistente (ex.: nenhuma camada aplicável)."""

    error_type = RESOLVER_CONFIGURATION_ERROR


@dataclass(frozen=True)
class ResolutionResult:
    """Resultado agregado de uma resolução."""

    values: Optional[Dict[str, Any]]
    values_hash: Optional[str]
    provenance: Dict[str, str] = field(default_factory=dict)
    overrides: List[OverrideRecord] = field(default_factory=list)
    validation: Optional[ValidationReport] = None
    stages: Dict[str, StageResult] = field(default_factory=dict)
    manifest: Optional[ResolutionManifest] = None
    events: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(s.status != StageStatus.FAILED for s in self.stages.values())

    @property
    def error(self) -> Optional[Dict[str, Any]]:
        """ErrorPayload serializado do estágio que falhou, se houver."""
        for stage in self.stages.values():
            if stage.status == StageStatus.FAILED:
                return stage.payload.get("error")
        return None

    @property
    def warnings(self) -> List[str]:
        out: List[str] = []
        for stage in self.stages.values():
            out.extend(stage.warnings)
        return out


@dataclass
class _State:
    """Estado intermediário compartilhado entre estágios de uma resolução."""

    environment: Optional[str]
    region: Optional[str]
    layers: List[Layer] = field(default_factory=list)
    merge: Optional[MergeResult] = None
    values: Optional[Dict[str, Any]] = None
    validation: Optional[ValidationReport] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _count_expressions(value: Any) -> int:
    if isinstance(value, dict):
        return sum(_count_expressions(v) for v in value.values())
    if isinstance(value, list):
        return sum(_count_expressions(v) for v in value)
    return 1 if has_expression(value) else 0


class Resolver:
    """Resolver canônico do values-stack (seleção + merge + expressões + schema)."""

    def __init__(
        self,
        store: LayerStore,
        *,
        settings: Optional[Dict[str, Any]] = None,
        helpers: Optional[Mapping[str, Union[str, Sequence[Node]]]] = None,
        schema: Optional[Dict[str, Any]] = None,
        release: Optional[Dict[str, Any]] = None,
        chart: Optional[Dict[str, Any]] = None,
        functions: Optional[Mapping[str, Callable[..., Any]]] = None,
    ):
        self.store = store
        self.settings: Dict[str, Any] = settings if settings is not None else default_settings()
        self.helpers = dict(helpers or {})
        self.schema = schema
        self.release = dict(release if release is not None else (self.settings.get("release") or {}))
        self.chart = dict(chart if chart is not None else (self.settings.get("chart") or {}))
        self.functions = dict(functions or {})

        # Schema inválido é erro de configuração, detectado antes de qualquer resolução.
        if self.schema is not None:
            check_schema(self.schema)

    # ------------------------------------------------------------------
    # Políticas (settings)
    # ------------------------------------------------------------------
    def _section(self, name: str) -> Dict[str, Any]:
        section = self.settings.get(name, {}) or {}
        return section if isinstance(section, dict) else {}

    def _is_enabled(self, stage_id: str) -> bool:
        if stage_id == STAGE_EXPRESSIONS_EVALUATE:
            return bool(self._section("expressions").get("enabled", True))
        if stage_id == STAGE_SCHEMA_VALIDATE:
            return self.schema is not None and bool(self._section("validation").get("enabled", True))
        return True

    def _skip_reason(self, stage_id: str) -> str:
        if stage_id == STAGE_SCHEMA_VALIDATE and self.schema is None:
            return "skipped: no schema provided"
        return "skipped by settings"

    def _fail_on_error(self) -> bool:
        return bool(self._section("validation").get("fail_on_error", True))

    # ------------------------------------------------------------------
    # Evaluator
    # ------------------------------------------------------------------
    def build_evaluator(
        self,
        values: Dict[str, Any],
        *,
        environment: Optional[str] = None,
        region: Optional[str] = None,
    ) -> Evaluator:
        """Evaluator configurado pelas settings, com `.Values` apontando para `values`."""
        expr_cfg = self._section("expressions")
        context = build_context(
            values,
            release=self.release,
            chart=self.chart,
            environment=environment,
            region=region,
        )
        return Evaluator(
            context,
            helpers=self.helpers,
            functions=self.functions,
            strict_undefined=bool(expr_cfg.get("strict_undefined", False)),
            max_depth=int(expr_cfg.get("max_depth", 32)),
        )

    # ------------------------------------------------------------------
    # Estágios
    # ------------------------------------------------------------------
    def _select_layers(self, ctx: ResolutionContext, state: _State) -> StageResult:
        sid = STAGE_LAYERS_SELECT
        selected = self.store.ordered(state.environment, state.region)
        if not selected:
            raise ResolverConfigurationError(
                "Nenhuma camada aplicável ao alvo informado",
                details={
                    "environment": state.environment,
                    "region": state.region,
                    "layers_total": len(self.store),
                },
                hint="Declare ao menos uma camada global.",
            )

        if state.environment is not None and not any(l.scope is LayerScope.ENVIRONMENT for l in selected):
            ctx.add_warning(stage_id=sid, message=f"no environment layer for '{state.environment}'")
        if state.region is not None and not any(l.scope is LayerScope.REGION for l in selected):
            ctx.add_warning(stage_id=sid, message=f"no region layer for '{state.region}'")

        described: List[Dict[str, Any]] = []
        for position, layer in enumerate(selected):
            info = layer.describe()
            info["order"] = position
            info["hash"] = compute_values_hash(layer.values)
            described.append(info)
            ctx.log(stage_id=sid, level="info", message=f"layer selected: {layer.name}", scope=layer.scope.value)

        state.layers = selected
        return StageResult(
            stage_id=sid,
            status=StageStatus.SUCCESS,
            summary=f"{len(selected)} of {len(self.store)} layers selected",
            metrics={"layers_selected": len(selected), "layers_total": len(self.store)},
            payload={"layers": described},
        )

    def _merge_values(self, ctx: ResolutionContext, state: _State) -> StageResult:
        sid = STAGE_VALUES_MERGE
        policy = MergePolicy.from_settings(self.settings)
        result = merge_layers(state.layers, policy)

        for record in result.overrides:
            ctx.log(
                stage_id=sid,
                level="debug",
                message=f"{record.path} {record.action} by {record.layer}",
                previous_layer=record.previous_layer,
            )

        state.merge = result
        state.values = result.values
        return StageResult(
            stage_id=sid,
            status=StageStatus.SUCCESS,
            summary=f"{len(result.layers)} layers merged ({policy.list_strategy} lists)",
            metrics={"leaves": len(result.provenance), "overrides": len(result.overrides)},
        )

    def _evaluate_expressions(self, ctx: ResolutionContext, state: _State) -> StageResult:
        sid = STAGE_EXPRESSIONS_EVALUATE
        assert state.values is not None
        expressions = _count_expressions(state.values)

        evaluator = self.build_evaluator(state.values, environment=state.environment, region=state.region)
        state.values = evaluator.resolve_values(state.values)

        ctx.log(stage_id=sid, level="info", message=f"{expressions} expressions evaluated")
        return StageResult(
            stage_id=sid,
            status=StageStatus.SUCCESS,
            summary=f"{expressions} expressions evaluated",
            metrics={"expressions": expressions, "helpers": len(self.helpers)},
        )

    def _validate_schema(self, ctx: ResolutionContext, state: _State) -> StageResult:
        sid = STAGE_SCHEMA_VALIDATE
        assert state.values is not None and self.schema is not None
        report = validate_values(state.values, self.schema)
        state.validation = report

        if not report.valid:
            if self._fail_on_error():
                raise ValuesValidationError([i.to_dict() for i in report.issues])
            for issue in report.issues:
                ctx.add_warning(stage_id=sid, message=f"{issue.path}: {issue.message}")

        return StageResult(
            stage_id=sid,
            status=StageStatus.SUCCESS,
            summary="values match schema" if report.valid else f"{len(report.issues)} schema issues (not enforced)",
            metrics={"issues": len(report.issues)},
        )

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    def _merge_warnings(self, ctx: ResolutionContext, result: StageResult) -> StageResult:
        merged: List[str] = []
        for msg in list(result.warnings) + ctx.warnings_for(result.stage_id):
            if msg not in merged:
                merged.append(msg)
        if merged == list(result.warnings):
            return result
        return StageResult(
            stage_id=result.stage_id,
            status=result.status,
            summary=result.summary,
            metrics=result.metrics,
            warnings=merged,
            payload=result.payload,
        )

    def _flush_events(self, ctx: ResolutionContext, manifest: ResolutionManifest, start: int) -> int:
        for event in ctx.events[start:]:
            extra = {k: v for k, v in event.items() if k not in ("run_id", "stage_id", "timestamp")}
            add_event(
                manifest,
                event_type="log",
                ts=datetime.fromisoformat(event["timestamp"]),
                stage_id=event.get("stage_id"),
                payload=extra,
            )
        return len(ctx.events)

    def resolve(self, environment: Optional[str] = None, region: Optional[str] = None) -> ResolutionResult:
        started = _now()
        run_id = uuid.uuid4().hex
        ctx = ResolutionContext(
            run_id=run_id,
            created_at=started.isoformat(),
            settings=self.settings,
            environment=environment,
            region=region,
        )
        manifest = create_manifest(
            run_id=run_id,
            started_at=started,
            tool_version=__version__,
            settings_hash=compute_config_hash(self.settings),
            environment=environment,
            region=region,
        )
        add_event(manifest, event_type="resolution_started", ts=started)

        state = _State(environment=environment, region=region)
        handlers: Dict[str, Callable[[ResolutionContext, _State], StageResult]] = {
            STAGE_LAYERS_SELECT: self._select_layers,
            STAGE_VALUES_MERGE: self._merge_values,
            STAGE_EXPRESSIONS_EVALUATE: self._evaluate_expressions,
            STAGE_SCHEMA_VALIDATE: self._validate_schema,
        }

        results: Dict[str, StageResult] = {}
        failed = False
        flushed = 0
        for sid in STAGES:
            if failed or not self._is_enabled(sid):
                summary = "skipped due to failed stage" if failed else self._skip_reason(sid)
                results[sid] = StageResult(stage_id=sid, status=StageStatus.SKIPPED, summary=summary)
                stage_finished(manifest, stage_id=sid, ts=_now(), result=results[sid].to_dict())
                continue

            stage_started(manifest, stage_id=sid, ts=_now())
            try:
                result = self._merge_warnings(ctx, handlers[sid](ctx, state))
            except Exception as e:
                error: ErrorPayload = payload_from_exception(e, stage=sid)
                ctx.log(stage_id=sid, level="error", message=error.message, error_type=error.type)
                flushed = self._flush_events(ctx, manifest, flushed)
                results[sid] = StageResult(
                    stage_id=sid,
                    status=StageStatus.FAILED,
                    summary=error.message,
                    warnings=ctx.warnings_for(sid),
                    payload={"error": error.to_dict()},
                )
                stage_failed(manifest, stage_id=sid, ts=_now(), error=error.to_dict())
                failed = True
                continue

            results[sid] = result
            flushed = self._flush_events(ctx, manifest, flushed)
            stage_finished(manifest, stage_id=sid, ts=_now(), result=result.to_dict())

        if state.layers:
            record_input(
                manifest,
                key="layers",
                value=results[STAGE_LAYERS_SELECT].payload.get("layers", []),
            )

        values = None if failed else state.values
        values_hash = compute_values_hash(values) if values is not None else None
        provenance = dict(state.merge.provenance) if state.merge is not None else {}
        overrides = list(state.merge.overrides) if state.merge is not None else []

        record_output(manifest, key="values_hash", value=values_hash)
        record_output(manifest, key="provenance", value=provenance)
        record_output(manifest, key="overrides", value=[o.to_dict() for o in overrides])
        record_output(
            manifest,
            key="validation",
            value=state.validation.to_dict() if state.validation is not None else None,
        )
        record_output(manifest, key="ok", value=not failed)
        add_event(
            manifest,
            event_type="resolution_finished",
            ts=_now(),
            payload={"ok": not failed, "values_hash": values_hash},
        )

        return ResolutionResult(
            values=values,
            values_hash=values_hash,
            provenance=provenance,
            overrides=overrides,
            validation=state.validation,
            stages=results,
            manifest=manifest,
            events=list(ctx.events),
        )
