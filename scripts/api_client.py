"""Lightweight REST client for the pypickem API."""

from __future__ import annotations

import argparse
import json

import httpx


def _params(args: argparse.Namespace, *names: str) -> dict[str, str]:
    params: dict[str, str] = {}
    for name in names:
        value = getattr(args, name, None)
        if value is not None:
            params[name] = str(value)
    return params


def _show(resp: httpx.Response) -> None:
    try:
        payload = resp.json()
    except ValueError:
        raise SystemExit(f"{resp.status_code}: non-JSON response") from None
    if resp.status_code >= 400:
        raise SystemExit(f"{resp.status_code}: {payload.get('error', payload)}")
    print(json.dumps(payload, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the pypickem REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument(
        "endpoint",
        choices=["meta", "players", "stats", "best", "auto", "nba-meta", "nba-players", "nba-stats", "lineup"],
        help="Which route to call",
    )
    parser.add_argument("--season", type=int, default=None)
    parser.add_argument("--week", type=int, default=None)
    parser.add_argument("--date", default=None, help="NBA slate date, YYYY-MM-DD")
    parser.add_argument("--mode", default=None, help="Scoring mode: std, half or ppr")
    parser.add_argument("--sport", default="NFL", help="Sport for the lineup endpoint")
    parser.add_argument("--pick", action="append", default=[], help="Lineup slot pick (e.g., QB=00-0033873)")
    parser.add_argument("--autofill", action="store_true", help="Ask the server to fill the lineup")
    parser.add_argument("--target", type=float, default=None, help="Lineup target points (server default 100)")
    args = parser.parse_args()

    routes = {
        "meta": ("/api/meta", ()),
        "players": ("/api/players", ("season", "week")),
        "stats": ("/api/stats", ("season", "week", "mode")),
        "best": ("/api/best", ("season", "mode")),
        "auto": ("/api/auto", ("mode",)),
        "nba-meta": ("/api/nba/meta", ()),
        "nba-players": ("/api/nba/players", ("date",)),
        "nba-stats": ("/api/nba/stats", ("date",)),
    }

    with httpx.Client(base_url=args.base_url, timeout=60.0) as client:
        if args.endpoint == "lineup":
            picks: dict[str, str] = {}
            for entry in args.pick:
                if "=" not in entry:
                    raise SystemExit(f"Invalid pick '{entry}', expected SLOT=PLAYER_ID")
                slot, player_id = entry.split("=", 1)
                picks[slot.strip()] = player_id.strip()
            body = {
                "sport": args.sport,
                "season": args.season,
                "week": args.week,
                "date": args.date,
                "mode": args.mode or "ppr",
                "picks": picks,
                "autofill": args.autofill,
                "target": args.target,
            }
            _show(client.post("/api/lineup", json=body))
            return

        path, names = routes[args.endpoint]
        resp = client.get(path, params=_params(args, *names))
        if resp.status_code == 200 and args.endpoint == "meta":
            print(f"ETag {resp.headers.get('etag')}  Cache-Control {resp.headers.get('cache-control')}")
        _show(resp)


if __name__ == "__main__":
    main()
