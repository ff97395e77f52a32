import httpx


def prompt(text: str, default: str | None = None) -> str:
    hint = f" [{default}]" if default is not None else ""
    value = input(f"{text}{hint}: ").strip()
    return value or (default or "")


def prompt_yes_no(text: str, default: bool = False) -> bool:
    suffix = "Y/n" if default else "y/N"
    value = input(f"{text} ({suffix}): ").strip().lower()
    if not value:
        return default
    return value in {"y", "yes"}


def call_api(client: httpx.Client, method: str, path: str):
    response = client.request(method, path, timeout=60)
    response.raise_for_status()
    return response.json()


def main():
    print("Courtside score audit")
    base_url = prompt("API base URL", "http://127.0.0.1:8000")
    admin_id = prompt("Admin principal id", "admin")
    reconcile = prompt_yes_no("Reconcile drifted scores", False)

    headers = {"X-Principal-Id": admin_id, "X-Principal-Admin": "true"}
    drifted = 0

    with httpx.Client(base_url=base_url, headers=headers) as client:
        games = call_api(client, "GET", "/games/")
        print(f"Checking {len(games)} games...")

        for game in games:
            audit = call_api(client, "GET", f"/games/{game['id']}/score/audit")
            if audit["consistent"]:
                continue

            drifted += 1
            stored = audit["stored"]
            expected = audit["expected"]
            print(
                f"-> game {game['id']} ({game['teamName']} vs {game['opponentTeam']}): "
                f"stored {stored['homeScore']}-{stored['awayScore']}, "
                f"stats say {expected['homeScore']}-{expected['awayScore']}"
            )
            if reconcile:
                call_api(client, "POST", f"/games/{game['id']}/score/reconcile")
                print("   reconciled")

    print(f"Audit complete: {drifted} of {len(games)} games drifted.")


if __name__ == "__main__":
    main()
