"""Run a dry-run rotation round through the API and print the turn timeline.

This script drives the local FastAPI app via TestClient, so it exercises:
- room membership via /api/room/toggle
- connect, audio admission and utterance relay on a dry-run session
- the turn event log
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import tempfile
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List

from fastapi.testclient import TestClient

# Ensure the source tree is importable when the script is run via relative path.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from chatterbots.main import create_app
from chatterbots.services.blob_store import YamlBlobStore
from chatterbots.services.conversation_controller import ConversationController
from chatterbots.services.turn_orchestration import DryRunLiveSession, SilentCaptureSource


def _post(client: TestClient, path: str, **kwargs) -> Dict[str, Any]:
    resp = client.post(path, **kwargs)
    resp.raise_for_status()
    return resp.json()


def run_smoke(persona_ids: List[str], utterances: List[str]) -> Dict[str, Any]:
    logging.disable(logging.CRITICAL)

    with tempfile.TemporaryDirectory() as state_dir:
        controller = ConversationController(
            blob_store=YamlBlobStore(Path(state_dir)),
            session=DryRunLiveSession(),
            capture_source=SilentCaptureSource(),
        )
        timeline: List[Dict[str, Any]] = []

        with TestClient(create_app(controller)) as client:
            _post(client, "/api/conversation/panels/user_config", json={"open": False})
            for persona_id in persona_ids:
                _post(client, f"/api/room/toggle/{persona_id}")

            timeline.append({"step": "connect", **_post(client, "/api/conversation/connection")})

            for text in utterances:
                audio = _post(client, "/api/conversation/dry-run/audio", json={"data": "AAAA"})
                state = _post(client, "/api/conversation/dry-run/utterance", json={"text": text})
                timeline.append(
                    {
                        "step": "utterance",
                        "text": text,
                        "audio_delivered": audio["delivered"],
                        **state,
                    }
                )

            events_resp = client.get("/api/conversation/events", params={"limit": 1000})
            events_resp.raise_for_status()
            events = events_resp.json()["events"]

            _post(client, "/api/conversation/connection")

    relays = [
        {"from": e["from_persona_id"], "to": e["to_persona_id"], "text": e["text"]}
        for e in events
        if e["type"] == "relay_sent"
    ]
    return {
        "active": ["proper-paul", *persona_ids],
        "timeline": timeline,
        "event_counts": dict(Counter(e["type"] for e in events)),
        "relays": relays,
        "sent_texts": controller.orchestrator.session.sent_texts,
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a dry-run turn rotation smoke flow.")
    parser.add_argument(
        "--persona",
        action="append",
        default=None,
        help="Preset persona id to add to the room (repeatable).",
    )
    parser.add_argument(
        "--utterance",
        action="append",
        default=None,
        help="Completed utterance to inject (repeatable).",
    )
    args = parser.parse_args()

    persona_ids = args.persona or ["chic-charlotte", "chef-shane"]
    utterances = args.utterance or [
        "What should I wear to dinner tonight?",
        "Something in velvet, obviously.",
        "And I would serve a velvety risotto to match.",
    ]

    result = run_smoke(persona_ids, utterances)
    print(json.dumps(result, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
