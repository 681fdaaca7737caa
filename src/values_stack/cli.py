"""
values-stack CLI (resolve / explain / validate / render)

Exemplos:
  values-stack resolve ./deploy --env prod --region eu-west-1 --set image.tag=1.4.2
  values-stack explain ./deploy --env prod --schema values.schema.json
  values-stack validate final-values.yaml --schema values.schema.json
  values-stack render ./deploy --env prod --templates ./templates

Exit codes:
  0  resolução/validação ok
  1  resolução ou validação falhou
  2  erro de uso ou de entrada (arquivo ausente, formato inválido, ...)
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from values_stack import __version__
from values_stack.core.config.errors import ConfigError
from values_stack.core.config.loader import load_settings
from values_stack.core.engine.resolver import ResolutionResult, Resolver
from values_stack.core.errors import payload_from_exception
from values_stack.core.exceptions import ValuesStackError
from values_stack.core.traceability.manifest import save_manifest
from values_stack.expressions.context import load_helpers
from values_stack.layers.loader import discover_layers, load_layer_file, read_mapping_file
from values_stack.layers.model import Layer, LayerScope
from values_stack.layers.set_parser import parse_set_overrides
from values_stack.layers.store import LayerStore
from values_stack.render.emitter import SUPPORTED_FORMATS, dump_values
from values_stack.render.errors import ManifestRenderError
from values_stack.render.manifests import render_manifests
from values_stack.report.report_md import generate_resolution_report_md
from values_stack.validation.schema import load_schema, validate_values


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

HELPERS_FILENAME = "_helpers.tpl"


def _print_json(data: Dict[str, Any], stream: Any = None) -> None:
    stream = stream or sys.stderr
    stream.write(json.dumps(data, ensure_ascii=False, default=str) + "\n")
    stream.flush()


def _emit(text: str, out: Optional[str]) -> None:
    if out:
        path = Path(out)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return
    sys.stdout.write(text if text.endswith("\n") else text + "\n")
    sys.stdout.flush()


def _load_cli_settings(path: Optional[str]) -> Dict[str, Any]:
    if path is not None and not Path(path).is_file():
        raise ConfigError(f"settings file not found: {path}", details={"path": path})
    return load_settings(local_path=path)


def _build_store(args: argparse.Namespace) -> LayerStore:
    store = LayerStore()
    store.extend(discover_layers(args.root, environment=args.env, region=args.region))

    for path in args.values or []:
        store.add(load_layer_file(path, name=f"values:{path}", scope=LayerScope.OVERRIDE))
    if args.set:
        store.add(Layer(name="--set", scope=LayerScope.OVERRIDE, values=parse_set_overrides(args.set), source="<cli>"))
    if args.set_string:
        store.add(
            Layer(
                name="--set-string",
                scope=LayerScope.OVERRIDE,
                values=parse_set_overrides(args.set_string, as_string=True),
                source="<cli>",
            )
        )
    return store


def _build_resolver(args: argparse.Namespace) -> Resolver:
    settings = _load_cli_settings(args.settings)

    helpers: Dict[str, Any] = {}
    templates = getattr(args, "templates", None)
    if templates and (Path(templates) / HELPERS_FILENAME).is_file():
        helpers.update(load_helpers(str(Path(templates) / HELPERS_FILENAME)))
    if args.helpers:
        helpers.update(load_helpers(args.helpers))

    schema = load_schema(args.schema) if args.schema else None
    return Resolver(_build_store(args), settings=settings, helpers=helpers, schema=schema)


def _run_resolution(args: argparse.Namespace) -> Tuple[Resolver, ResolutionResult]:
    resolver = _build_resolver(args)
    result = resolver.resolve(environment=args.env, region=args.region)

    if args.manifest and result.manifest is not None:
        save_manifest(result.manifest, Path(args.manifest))
    for warning in result.warnings:
        sys.stderr.write(f"warning: {warning}\n")
    if not result.ok:
        _print_json({"error": result.error})
    return resolver, result


def _output_format(args: argparse.Namespace, resolver: Resolver) -> Tuple[str, bool]:
    output_cfg = resolver.settings.get("output", {}) or {}
    fmt = args.format or output_cfg.get("format", "yaml")
    return fmt, bool(output_cfg.get("sort_keys", False))


def cmd_resolve(args: argparse.Namespace) -> int:
    resolver, result = _run_resolution(args)
    if not result.ok or result.values is None:
        return EXIT_FAILED
    fmt, sort_keys = _output_format(args, resolver)
    _emit(dump_values(result.values, fmt, sort_keys), args.out)
    return EXIT_OK


def cmd_explain(args: argparse.Namespace) -> int:
    _, result = _run_resolution(args)
    assert result.manifest is not None
    _emit(generate_resolution_report_md(result.manifest.to_dict()), args.out)
    return EXIT_OK if result.ok else EXIT_FAILED


def cmd_validate(args: argparse.Namespace) -> int:
    values = read_mapping_file(Path(args.values_file))
    report = validate_values(values, load_schema(args.schema))
    if report.valid:
        sys.stdout.write("values match schema\n")
        return EXIT_OK
    for issue in report.issues:
        sys.stdout.write(f"{issue.path} [{issue.keyword}]: {issue.message}\n")
    return EXIT_FAILED


def cmd_render(args: argparse.Namespace) -> int:
    resolver, result = _run_resolution(args)
    if not result.ok or result.values is None:
        return EXIT_FAILED

    evaluator = resolver.build_evaluator(result.values, environment=args.env, region=args.region)
    try:
        rendered = render_manifests(Path(args.templates), evaluator)
    except ManifestRenderError as e:
        _print_json({"error": payload_from_exception(e).to_dict()})
        return EXIT_FAILED

    chunks: List[str] = []
    for name, documents in rendered.items():
        for document in documents:
            body = yaml.safe_dump(document, default_flow_style=False, sort_keys=False, allow_unicode=True)
            chunks.append(f"---\n# Source: {name}\n{body}")
    _emit("".join(chunks), args.out)
    return EXIT_OK


def _add_resolution_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("root", help="Diretório com values.yaml e camadas por convenção")
    p.add_argument("--env", default=None, help="Environment alvo")
    p.add_argument("--region", default=None, help="Region alvo")
    p.add_argument("-f", "--values", action="append", default=[], help="Arquivo extra de values (override)")
    p.add_argument("--set", action="append", default=[], help="Override KEY=VALUE (tipado)")
    p.add_argument("--set-string", action="append", default=[], help="Override KEY=VALUE (sempre string)")
    p.add_argument("--helpers", default=None, help="Helpers nomeados (.tpl, .yaml ou .json)")
    p.add_argument("--schema", default=None, help="values.schema (.json ou .yaml)")
    p.add_argument("--settings", default=None, help="Arquivo de settings da ferramenta")
    p.add_argument("--out", default=None, help="Arquivo de saída (stdout quando omitido)")
    p.add_argument("--manifest", default=None, help="Persiste o Resolution Manifest em JSON")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="values-stack", description="Resolve layered Helm-style values")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="cmd", required=True)

    resolve_p = sub.add_parser("resolve", help="Resolve and print the final values")
    _add_resolution_args(resolve_p)
    resolve_p.add_argument("--format", choices=SUPPORTED_FORMATS, default=None)
    resolve_p.set_defaults(func=cmd_resolve)

    explain_p = sub.add_parser("explain", help="Resolve and print the Markdown resolution report")
    _add_resolution_args(explain_p)
    explain_p.set_defaults(func=cmd_explain)

    validate_p = sub.add_parser("validate", help="Validate a values file against a schema")
    validate_p.add_argument("values_file")
    validate_p.add_argument("--schema", required=True)
    validate_p.set_defaults(func=cmd_validate)

    render_p = sub.add_parser("render", help="Resolve, then render manifest templates")
    _add_resolution_args(render_p)
    render_p.add_argument("--templates", required=True, help="Diretório de templates de manifest")
    render_p.set_defaults(func=cmd_render)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except ValuesStackError as e:
        _print_json({"error": payload_from_exception(e).to_dict()})
        return EXIT_USAGE
    except OSError as e:
        _print_json({"error": {"type": "IO_ERROR", "message": str(e)}})
        return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
