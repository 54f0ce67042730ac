"""CI Hugging Face publisher."""

from __future__ import annotations

from pathlib import Path

from huggingface_hub import CommitOperationAdd, HfApi, create_repo
from loguru import logger

# リポジトリ上のパスは indexUrl / downloadUrl と同じにする
RELEASE_PATTERNS = ("dict/**/*.zip", "index/*-index.json")


def release_files(root_dir: Path) -> list[Path]:
    """公開対象のパッケージと index のコピー（パス順）."""
    files: set[Path] = set()
    for pattern in RELEASE_PATTERNS:
        files.update(p for p in root_dir.glob(pattern) if p.is_file())
    return sorted(files)


def publish_release(
    root_dir: Path,
    manifest_path: Path,
    readme_path: Path,
    repo_id: str,
    token: str,
    commit_message: str | None = None,
) -> None:
    """dict/ と index/ をデータセットリポジトリへ1つのコミットでアップロードする.

    ``dict/<target>/<source>/<name>.zip`` と ``index/<name>-index.json`` は
    root_dir からの相対パスのまま置くので、index の URL がそのまま解決できる。
    """
    root_dir = Path(root_dir)
    files = release_files(root_dir)
    if not files:
        logger.warning(f"Nothing to publish under {root_dir}")
        return

    operations = [
        CommitOperationAdd(path_in_repo=p.relative_to(root_dir).as_posix(), path_or_fileobj=str(p))
        for p in files
    ]
    for extra in (readme_path, manifest_path):
        if extra.exists():
            operations.append(CommitOperationAdd(path_in_repo=extra.name, path_or_fileobj=str(extra)))
        else:
            logger.warning(f"Missing file, skipping upload: {extra}")

    api = HfApi(token=token)
    create_repo(repo_id=repo_id, repo_type="dataset", exist_ok=True, token=token)

    logger.info(f"Uploading {len(operations)} files to Hugging Face: {repo_id}")
    api.create_commit(
        repo_id=repo_id,
        repo_type="dataset",
        operations=operations,
        commit_message=commit_message or "Update dictionaries",
    )
    logger.info(f"Upload complete: https://huggingface.co/datasets/{repo_id}")
