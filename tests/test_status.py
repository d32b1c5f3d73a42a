from pathlib import Path

from apm_fixture_archive.config import apply_cli_overrides, build_archive_config, load_config
from apm_fixture_archive.status import build_metadata_report, format_metadata_report


def test_report_flags_windows_that_do_not_move_forward(tmp_path: Path) -> None:
    config = build_archive_config(
        apply_cli_overrides(load_config(None), {"paths": {"root": str(tmp_path)}, "archive": {"profiles": "trial"}}),
        require_endpoints=False,
    )
    metadata = tmp_path / "x-pack" / "test" / "apm_api_integration" / "trial" / "archives_metadata.ts"
    metadata.parent.mkdir(parents=True)
    metadata.write_text(
        "export default {\n"
        "  'apm_7.8.0': { start: '2020-05-01T09:30:00.000Z', end: '2020-05-01T09:00:00.000Z' },\n"
        "  'apm_8.0.0': { start: '2020-06-12T10:00:00.000Z', end: '2020-06-12T10:30:00.000Z' },\n"
        "  'broken': { start: 'yesterday' },\n"
        "};\n",
        encoding="utf-8",
    )

    report = build_metadata_report(config)

    assert report["profiles"]["trial"]["invalid_windows"] == ["apm_7.8.0", "broken"]
    text = format_metadata_report(report)
    assert "- apm_7.8.0: 2020-05-01T09:30:00.000Z -> 2020-05-01T09:00:00.000Z (invalid window)" in text
    assert "- apm_8.0.0: 2020-06-12T10:00:00.000Z -> 2020-06-12T10:30:00.000Z\n" in text
