"""
src/values_stack/report/report_md.py

Gerador canônico do relatório de resolução em Markdown (v1).

Regras:
- O relatório é derivado EXCLUSIVAMENTE do Resolution Manifest (dict).
- Não infere, não recalcula, não acessa filesystem.
- Mesmo Manifest => mesmo relatório (determinismo por ordenação estável).

Estrutura mínima obrigatória:
# Resolution Report

## Summary
## Layers
## Stages
## Provenance
## Overrides
## Validation
## Events
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from values_stack.core.engine.resolver import STAGES


REQUIRED_SECTIONS: List[str] = [
    "# Resolution Report",
    "## Summary",
    "## Layers",
    "## Stages",
    "## Provenance",
    "## Overrides",
    "## Validation",
    "## Events",
]


def _sorted_items(d: Any) -> List[Tuple[str, Any]]:
    if not isinstance(d, dict):
        return []
    return sorted(d.items(), key=lambda kv: kv[0])


def _cell(value: Any) -> str:
    text = "" if value is None else str(value)
    return text.replace("|", "\\|").replace("\n", " ")


def _ordered_stages(stages: Dict[str, Any]) -> List[Tuple[str, Any]]:
    # ordem canônica de execução, independente da ordem das chaves persistidas
    rank = {sid: i for i, sid in enumerate(STAGES)}
    return sorted(stages.items(), key=lambda kv: (rank.get(kv[0], len(rank)), kv[0]))


def _require_manifest(manifest: Dict[str, Any]) -> Dict[str, Any]:
    if hasattr(manifest, "to_dict"):
        manifest = manifest.to_dict()
    if not isinstance(manifest, dict) or not manifest:
        raise ValueError("Manifest is required to generate the resolution report")
    return manifest


def _section_dict(manifest: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = manifest.get(key)
    return value if isinstance(value, dict) else {}


def generate_resolution_report_md(manifest: Dict[str, Any]) -> str:
    """Gera o relatório de resolução completo a partir do Manifest."""
    manifest = _require_manifest(manifest)

    run = _section_dict(manifest, "run")
    inputs = _section_dict(manifest, "inputs")
    stages = _section_dict(manifest, "stages")
    outputs = _section_dict(manifest, "outputs")
    events = manifest.get("events") if isinstance(manifest.get("events"), list) else []

    lines: List[str] = []
    lines.append("# Resolution Report\n")

    # Summary
    lines.append("## Summary")
    ok = outputs.get("ok")
    status = "ok" if ok else ("failed" if ok is False else "<unknown>")
    lines.append(f"- **Run ID**: `{run.get('run_id', '<unknown>')}`")
    lines.append(f"- **Started At (UTC)**: `{run.get('started_at', '<unknown>')}`")
    lines.append(f"- **Tool Version**: `{run.get('tool_version', '<unknown>')}`")
    lines.append(f"- **Environment**: `{run.get('environment') or '-'}`")
    lines.append(f"- **Region**: `{run.get('region') or '-'}`")
    lines.append(f"- **Status**: `{status}`")
    lines.append(f"- **Values Hash**: `{outputs.get('values_hash') or '-'}`")
    lines.append(f"- **Settings Hash**: `{inputs.get('settings_hash') or '-'}`")
    lines.append("")

    # Layers (ordem de aplicação)
    lines.append("## Layers")
    layers = inputs.get("layers") if isinstance(inputs.get("layers"), list) else []
    if layers:
        lines.append("| # | Layer | Scope | Source | Hash |")
        lines.append("|---|---|---|---|---|")
        for position, layer in enumerate(layers):
            if not isinstance(layer, dict):
                continue
            order = layer.get("order", position)
            digest = str(layer.get("hash") or "")[:12]
            lines.append(
                f"| {order} | {_cell(layer.get('name'))} | {_cell(layer.get('scope'))} "
                f"| `{_cell(layer.get('source'))}` | `{digest}` |"
            )
    else:
        lines.append("No layers recorded in the Manifest.")
    lines.append("")

    # Stages (ordem canônica de execução)
    lines.append("## Stages")
    if stages:
        for stage_id, stage in _ordered_stages(stages):
            if not isinstance(stage, dict):
                continue
            line = f"- **{stage_id}** — status: `{stage.get('status', 'unknown')}`"
            if stage.get("duration_ms") is not None:
                line += f" ({stage.get('duration_ms')} ms)"
            if stage.get("summary"):
                line += f" — {stage.get('summary')}"
            lines.append(line)
            for warning in stage.get("warnings") or []:
                lines.append(f"  - warning: {warning}")
            error = stage.get("error")
            if isinstance(error, dict):
                lines.append(f"  - error `{error.get('type')}`: {error.get('message')}")
                if error.get("hint"):
                    lines.append(f"  - hint: {error.get('hint')}")
    else:
        lines.append("No stages recorded in the Manifest.")
    lines.append("")

    # Provenance
    lines.append("## Provenance")
    provenance = outputs.get("provenance")
    if isinstance(provenance, dict) and provenance:
        lines.append("| Path | Layer |")
        lines.append("|---|---|")
        for path, layer in _sorted_items(provenance):
            lines.append(f"| `{_cell(path)}` | {_cell(layer)} |")
    else:
        lines.append("No provenance recorded in the Manifest.")
    lines.append("")

    # Overrides
    lines.append("## Overrides")
    overrides = outputs.get("overrides")
    if isinstance(overrides, list) and overrides:
        for record in overrides:
            if not isinstance(record, dict):
                continue
            lines.append(
                f"- `{record.get('path')}`: {record.get('action')} by **{record.get('layer')}** "
                f"(was **{record.get('previous_layer')}**)"
            )
    else:
        lines.append("No overrides recorded.")
    lines.append("")

    # Validation
    lines.append("## Validation")
    validation = outputs.get("validation")
    if isinstance(validation, dict):
        issues = validation.get("issues") if isinstance(validation.get("issues"), list) else []
        if validation.get("valid"):
            lines.append("Values match the schema.")
        else:
            lines.append(f"{len(issues)} issue(s) found:")
            for issue in issues:
                lines.append(f"- `{issue.get('path')}` [{issue.get('keyword')}]: {issue.get('message')}")
    else:
        lines.append("Schema validation was not executed.")
    lines.append("")

    # Events
    lines.append("## Events")
    lines.append(f"- Events recorded: `{len(events)}`")
    for event in events:
        if not isinstance(event, dict):
            continue
        stage = event.get("stage_id") or "-"
        payload = event.get("payload") if isinstance(event.get("payload"), dict) else {}
        detail = payload.get("message") if event.get("event_type") == "log" else None
        if detail:
            lines.append(f"- `{event.get('timestamp')}` {event.get('event_type')} [{stage}] {detail}")
        else:
            lines.append(f"- `{event.get('timestamp')}` {event.get('event_type')} [{stage}]")
    lines.append("")

    content = "\n".join(lines)

    for sec in REQUIRED_SECTIONS:
        if sec not in content:
            raise RuntimeError(f"Report generation failed: missing required section: {sec}")

    return content
