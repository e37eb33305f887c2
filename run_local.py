"""
Run a policy flow (new or renew) locally and keep the result
Writes the flow result (including every field outcome) to logs/
"""
import os
# Disable tracing for local runs - MUST be set before config is imported
os.environ.setdefault('ENABLE_TRACING', 'False')

import asyncio
import json
import sys
import time

from config import LOG_DIR
from fixtures import load_credentials, load_fixture
from policy_issuance import NewCorporatePolicy
from policy_login import PolicyLogin
from policy_renewal import RenewPolicy

FLOWS = {
    "new": NewCorporatePolicy,
    "renew": RenewPolicy,
}


async def run_local(fixture_name: str = "newCorporate.data.json", flow_name: str = "new") -> dict:
    """Run the flow once, log out and save the result"""
    task_id = f"local_{int(time.time())}"
    data = load_fixture(fixture_name)
    creds = load_credentials()

    print("=" * 80)
    print("LOCAL POLICY FLOW")
    print(f"Task ID: {task_id}")
    print(f"Fixture: {fixture_name}")
    print(f"Flow: {flow_name}")
    print("=" * 80)

    if not creds["username"] or not creds["password"]:
        print("\nNo credentials: set POLICY_USERNAME/POLICY_PASSWORD or fill testdata/Auth.json")
        return {"success": False, "message": "No credentials"}

    login_handler = PolicyLogin(creds["username"], creds["password"], task_id=task_id)
    try:
        await login_handler.init_browser()
        flow = FLOWS[flow_name](login_handler.page)
        result = await flow.run_flow(data, creds)

        # BUY NOW may have moved the flow to a popup; log out from there
        login_handler.page = flow.page
        if result["success"]:
            await login_handler.logout()
    finally:
        await login_handler.close()

    result_path = LOG_DIR / f"{task_id}_result.json"
    with open(result_path, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2)

    print(f"\nSuccess: {result['success']}")
    print(f"Message: {result['message']}")
    print(f"Result saved to: {result_path}")
    return result


if __name__ == "__main__":
    fixture = sys.argv[1] if len(sys.argv) > 1 else "newCorporate.data.json"
    flow_name = sys.argv[2] if len(sys.argv) > 2 else "new"
    outcome = asyncio.run(run_local(fixture, flow_name))
    sys.exit(0 if outcome.get("success") else 1)
