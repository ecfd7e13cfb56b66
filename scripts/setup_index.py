#!/usr/bin/env python3
"""
Index Setup Script

Creates the documents index (if missing) and bulk-loads a JSON dataset
into it. Each dataset entry needs id, title, content and tags.

Usage:
    python scripts/setup_index.py [--dataset dataset.json] [--index documents]
"""

import sys
import json
import asyncio
import argparse
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def load_documents(dataset_path: Path) -> list:
    """Read the dataset file; it must hold a JSON array of document objects."""
    with open(dataset_path) as f:
        docs = json.load(f)

    if not isinstance(docs, list):
        raise ValueError(f"{dataset_path} must contain a JSON array, got {type(docs).__name__}")
    for i, doc in enumerate(docs):
        if not isinstance(doc, dict) or "id" not in doc:
            raise ValueError(f"Dataset entry {i} must be an object with an id")
    return docs


async def setup(dataset_path: Path, index: str, client=None) -> int:
    from ragkit.common.config import load_config
    from rag_mcp.adapter import ElasticsearchClient, ElasticsearchError

    if client is None:
        config = load_config()
        client = ElasticsearchClient(
            endpoint=config.elasticsearch.endpoint,
            api_key=config.elasticsearch.api_key,
            index=index or config.elasticsearch.index,
            timeout=config.elasticsearch.timeout,
        )

    try:
        docs = load_documents(dataset_path)

        created = await client.ensure_index()
        if created:
            print(f"[Setup] Index '{client.index}' created.")
        else:
            print(f"[Setup] Index '{client.index}' already exists.")

        count, errors = await client.bulk_index(docs)
        print(f"[Setup] {count} documents indexed successfully")
        if errors:
            print(f"[Setup] Errors during indexing: {errors}", file=sys.stderr)
        return 0

    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        print(f"[Setup] Invalid dataset: {e}", file=sys.stderr)
        return 1
    except ElasticsearchError as e:
        print(f"[Setup] Error: {e}, please wait some seconds and try again.", file=sys.stderr)
        return 1
    finally:
        await client.close()


def main():
    load_dotenv()
    parser = argparse.ArgumentParser(description="Create the documents index and load a dataset")
    parser.add_argument("--dataset", type=Path, default=Path("dataset.json"), help="JSON array of documents")
    parser.add_argument("--index", type=str, default="", help="Index name (default from config)")
    args = parser.parse_args()

    sys.exit(asyncio.run(setup(args.dataset, args.index)))


if __name__ == "__main__":
    main()
