# tests/test_cli.py
"""
Testes da CLI `values-stack` (resolve / explain / validate / render).

Os testes garantem que:
- exit codes seguem o contrato (0 ok, 1 falha de resolução/validação, 2 erro de uso/entrada)
- stdout recebe apenas o resultado; warnings e erros vão para stderr
- `--set`, `--set-string` e `-f` entram como camadas de override
"""

import json
from pathlib import Path

import pytest
import yaml

try:
    from values_stack import __version__
    from values_stack.cli import EXIT_FAILED, EXIT_OK, EXIT_USAGE, main
except Exception as e:  # noqa: BLE001
    main = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing src/values_stack/cli.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _last_json_line(text: str) -> dict:
    lines = [l for l in text.splitlines() if l.startswith("{")]
    assert lines, text
    return json.loads(lines[-1])


def test_resolve_prints_yaml(values_root: Path, capsys):
    _require_imports()
    code = main(
        [
            "resolve", str(values_root), "--env", "prod", "--region", "eu",
            "--set", "replicas=7", "--set-string", "image.tag=3.0",
        ]
    )
    out = capsys.readouterr()

    assert code == EXIT_OK
    values = yaml.safe_load(out.out)
    assert values["replicas"] == 7
    assert values["image"]["tag"] == "3.0"
    assert values["image"]["ref"] == "nginx:3.0"
    assert out.err == ""


def test_resolve_json_to_file_with_manifest(values_root: Path, tmp_path: Path, capsys):
    _require_imports()
    out_file = tmp_path / "out" / "values.json"
    manifest_file = tmp_path / "out" / "manifest.json"

    code = main(
        [
            "resolve", str(values_root), "--format", "json",
            "--out", str(out_file), "--manifest", str(manifest_file),
        ]
    )

    assert code == EXIT_OK
    assert capsys.readouterr().out == ""
    assert json.loads(out_file.read_text(encoding="utf-8"))["replicas"] == 1
    manifest = json.loads(manifest_file.read_text(encoding="utf-8"))
    assert manifest["outputs"]["ok"] is True


def test_values_file_override(values_root: Path, write_file, capsys):
    _require_imports()
    extra = write_file("extra/override.yaml", "replicas: 9\n")
    code = main(["resolve", str(values_root), "--env", "prod", "-f", str(extra)])
    assert code == EXIT_OK
    assert yaml.safe_load(capsys.readouterr().out)["replicas"] == 9


def test_resolve_json_with_yaml_dates(values_root: Path, write_file, capsys):
    _require_imports()
    write_file("values-prod.yaml", "releaseDate: 2024-01-01\n")
    settings = write_file("settings.yaml", "notes:\n  since: 2023-12-31\n")

    code = main(["resolve", str(values_root), "--env", "prod", "--format", "json", "--settings", str(settings)])
    out = capsys.readouterr()

    assert code == EXIT_OK, out.err
    assert json.loads(out.out)["releaseDate"] == "2024-01-01"


def test_missing_layers_are_warnings_on_stderr(values_root: Path, capsys):
    _require_imports()
    code = main(["resolve", str(values_root), "--env", "staging"])
    out = capsys.readouterr()
    assert code == EXIT_OK
    assert "warning: no environment layer for 'staging'" in out.err


def test_merge_conflict_exits_with_failure(values_root: Path, capsys):
    _require_imports()
    code = main(["resolve", str(values_root), "--set", "image=nginx"])
    out = capsys.readouterr()

    assert code == EXIT_FAILED
    assert out.out == ""
    error = _last_json_line(out.err)["error"]
    assert error["type"] == "MERGE_TYPE_CONFLICT"
    assert error["details"]["layer"] == "--set"


def test_settings_file_controls_output(values_root: Path, write_file, capsys):
    _require_imports()
    settings = write_file("settings.yaml", "output:\n  format: json\n  sort_keys: true\n")
    code = main(["resolve", str(values_root), "--settings", str(settings)])
    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert list(json.loads(out)) == sorted(json.loads(out))


@pytest.mark.parametrize(
    "argv_tail",
    [
        ["--settings", "missing-settings.yaml"],
        ["--schema", "missing-schema.json"],
        ["--set", "novalue"],
    ],
)
def test_input_errors_exit_with_usage_code(values_root: Path, capsys, argv_tail):
    _require_imports()
    code = main(["resolve", str(values_root)] + argv_tail)
    assert code == EXIT_USAGE
    assert "error" in _last_json_line(capsys.readouterr().err)


def test_missing_root_exits_with_usage_code(tmp_path: Path, capsys):
    _require_imports()
    code = main(["resolve", str(tmp_path / "nope")])
    assert code == EXIT_USAGE
    assert _last_json_line(capsys.readouterr().err)["error"]["type"] == "LAYER_NOT_FOUND"


def test_explain_prints_report(values_root: Path, capsys):
    _require_imports()
    code = main(["explain", str(values_root), "--env", "prod"])
    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert out.startswith("# Resolution Report")
    assert "| `replicas` | values-prod.yaml |" in out


def test_explain_reports_failures(values_root: Path, capsys):
    _require_imports()
    code = main(["explain", str(values_root), "--set", "image=nginx"])
    out = capsys.readouterr().out
    assert code == EXIT_FAILED
    assert "- **Status**: `failed`" in out


def test_schema_failure_exits_with_failure(values_root: Path, write_file, sample_schema, capsys):
    _require_imports()
    sample_schema["properties"]["replicas"]["maximum"] = 2
    schema = write_file("values.schema.json", json.dumps(sample_schema))

    code = main(["resolve", str(values_root), "--env", "prod", "--schema", str(schema)])

    assert code == EXIT_FAILED
    assert _last_json_line(capsys.readouterr().err)["error"]["type"] == "VALUES_INVALID"


def test_validate_command(write_file, sample_schema, capsys):
    _require_imports()
    schema = write_file("values.schema.json", json.dumps(sample_schema))
    good = write_file("good.yaml", "image:\n  repository: nginx\n  tag: '1'\nreplicas: 2\n")
    bad = write_file("bad.yaml", "image:\n  repository: nginx\n  tag: ''\nreplicas: 20\n")

    assert main(["validate", str(good), "--schema", str(schema)]) == EXIT_OK
    assert capsys.readouterr().out == "values match schema\n"

    assert main(["validate", str(bad), "--schema", str(schema)]) == EXIT_FAILED
    assert capsys.readouterr().out.splitlines() == [
        "image.tag [minLength]: string shorter than 1",
        "replicas [maximum]: 20 is greater than maximum 10",
    ]


def test_render_command(values_root: Path, write_file, capsys):
    _require_imports()
    write_file("templates/_helpers.tpl", '{{ define "name" }}{{ .Values.app.name }}-{{ .Environment }}{{ end }}')
    write_file("templates/service.yaml", 'kind: Service\nname: {{ include "name" . }}\n')
    write_file("templates/config.yaml", "kind: ConfigMap\nreplicas: {{ .Values.replicas }}\n")

    code = main(["render", str(values_root), "--env", "prod", "--templates", str(values_root / "templates")])
    out = capsys.readouterr().out

    assert code == EXIT_OK
    assert out == (
        "---\n# Source: config.yaml\nkind: ConfigMap\nreplicas: 3\n"
        "---\n# Source: service.yaml\nkind: Service\nname: shop-prod\n"
    )


def test_render_expression_failure_exits_with_failure(values_root: Path, write_file, capsys):
    _require_imports()
    write_file("templates/cm.yaml", 'kind: ConfigMap\ntag: {{ required "tag needed" .Values.missingTag }}\n')

    code = main(["render", str(values_root), "--templates", str(values_root / "templates")])
    out = capsys.readouterr()

    assert code == EXIT_FAILED
    assert out.out == ""
    error = _last_json_line(out.err)["error"]
    assert error["type"] == "MANIFEST_RENDER_FAILED"
    assert error["details"]["template"] == "cm.yaml"
    assert "tag needed" in error["message"]


def test_render_missing_templates_directory_is_usage_error(values_root: Path, capsys):
    _require_imports()
    code = main(["render", str(values_root), "--templates", str(values_root / "nope")])
    assert code == EXIT_USAGE
    assert _last_json_line(capsys.readouterr().err)["error"]["type"] == "TEMPLATES_NOT_FOUND"


def test_version(capsys):
    _require_imports()
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out
