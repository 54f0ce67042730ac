"""CI README generator."""

from __future__ import annotations

from collections import defaultdict

FLAVOR_DESCRIPTIONS = {
    "main": "Senses, examples, etymology and inflected forms",
    "ipa": "IPA pronunciations for one language pair",
    "ipa-merged": "IPA pronunciations merged from every edition",
    "glossary": "Short translations from the source edition",
    "glossary-extended": "Translation pairs from any edition",
}


def _dictionary_line(d: dict) -> str:
    source = d.get("source") or "all"
    entries = d.get("entries_written")
    entries_text = f"{entries:,}" if isinstance(entries, int) else "-"
    path = f"dict/{d.get('target')}/{source}/{d['name']}.zip"
    return f"| {d['name']} | {source} | {d.get('target')} | {d.get('revision', '-')} | {entries_text} | `{path}` |"


def generate_readme(manifest: dict, repo_id: str | None = None) -> str:
    """リリースマニフェストからデータセットカードを作る.

    Args:
        manifest: create_release_manifest() の結果
        repo_id: 公開先のデータセットリポジトリ（見出しに使う）
    """
    dictionaries = manifest.get("dictionaries", [])
    built = [d for d in dictionaries if d.get("status") == "built"]
    failed = [d for d in dictionaries if d.get("status") == "failed"]
    targets = sorted({d["target"] for d in built if d.get("target")})

    by_flavor: dict[str, list[dict]] = defaultdict(list)
    for d in built:
        by_flavor[d.get("flavor", "unknown")].append(d)

    title = repo_id or "Wiktionary Yomitan dictionaries"
    readme = """---
license: cc-by-sa-4.0
language:
"""
    for lang in targets:
        readme += f"- {lang}\n"
    readme += f"""tags:
- yomitan
- dictionary
- wiktionary
- kaikki
pretty_name: Wiktionary dictionaries for Yomitan
---

# {title}

Yomitan dictionaries generated from [Wiktionary](https://www.wiktionary.org/) data
extracted by [kaikki.org](https://kaikki.org/).

Each dictionary is a Yomitan package (`.zip`). Packages are updatable: Yomitan checks
`index/<name>-index.json` and downloads a new package when its revision is newer.
The revision is the date of the Wiktionary snapshot the package was built from.

## Files

- `dict/<target>/<source>/<name>.zip`: Yomitan packages
- `index/<name>-index.json`: index used for update checks
- `release_manifest.json`: revisions and counts of this release

## Dictionaries ({len(built)})
"""

    for flavor in FLAVOR_DESCRIPTIONS:
        rows = by_flavor.get(flavor)
        if not rows:
            continue
        readme += f"\n### {flavor}\n\n{FLAVOR_DESCRIPTIONS[flavor]}.\n\n"
        readme += "| name | source | target | revision | entries | path |\n"
        readme += "|---|---|---|---|---|---|\n"
        for d in sorted(rows, key=lambda d: d["name"]):
            readme += _dictionary_line(d) + "\n"

    if failed:
        readme += "\n## Not rebuilt in this release\n\n"
        for d in sorted(failed, key=lambda d: d["name"]):
            readme += f"- {d['name']}: {d.get('error', 'unknown error')}\n"

    readme += (
        "\n## License\n\nWiktionary content is available under CC BY-SA 4.0. "
        "Attribution: https://kaikki.org/\n"
    )
    return readme
