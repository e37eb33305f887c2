"""
Fixture loading and generated vehicle identifiers
"""
import json
import logging
import random
import string
from pathlib import Path

from config import POLICY_PASSWORD, POLICY_USERNAME, TESTDATA_DIR

logger = logging.getLogger(__name__)

IDENTIFIER_ALPHABET = string.ascii_uppercase + string.digits
GENERATED_VEHICLE_FILE = "generated_vehicle.json"


def load_fixture(name: str, directory: Path = None) -> dict:
    """
    Load a JSON fixture from the testdata directory

    Args:
        name: File name, with or without the .json suffix
        directory: Override for the fixture directory

    Returns:
        dict: Parsed fixture
    """
    if not name.endswith(".json"):
        name = f"{name}.json"
    path = (directory or TESTDATA_DIR) / name
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_credentials(directory: Path = None) -> dict:
    """
    Portal credentials from POLICY_USERNAME/POLICY_PASSWORD, else testdata/Auth.json

    Returns:
        dict: {"username": ..., "password": ...}; values are empty when unset
    """
    if POLICY_USERNAME and POLICY_PASSWORD:
        return {"username": POLICY_USERNAME, "password": POLICY_PASSWORD}

    auth_file = (directory or TESTDATA_DIR) / "Auth.json"
    if auth_file.exists():
        try:
            data = load_fixture("Auth.json", directory)
            return {"username": data.get("username", ""), "password": data.get("password", "")}
        except Exception as e:
            logger.warning(f"Could not read {auth_file}: {e}")

    return {"username": "", "password": ""}


def generate_identifier(length: int = 17, rng: random.Random = None) -> str:
    """Random uppercase base-36 string, the shape of a VIN or engine number"""
    rng = rng or random
    return "".join(rng.choice(IDENTIFIER_ALPHABET) for _ in range(length))


def ensure_vehicle_identifiers(vehicle: dict, directory: Path = None, rng: random.Random = None) -> dict:
    """
    Fill in a chassis (VIN) and engine number when the fixture leaves them blank

    The portal rejects a chassis number that was already used, so new
    policies normally get fresh ones. Generated values are recorded in
    testdata/generated_vehicle.json so the created policy can be looked up.

    Returns:
        dict: Copy of the vehicle details with vin and engineNo set
    """
    vehicle = dict(vehicle or {})
    generated = {}
    for key in ("vin", "engineNo"):
        if not str(vehicle.get(key) or "").strip():
            vehicle[key] = generate_identifier(17, rng)
            generated[key] = vehicle[key]

    if generated:
        path = (directory or TESTDATA_DIR) / GENERATED_VEHICLE_FILE
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"vin": vehicle["vin"], "engineNo": vehicle["engineNo"]}, f, indent=2)
        logger.info(f"Generated vehicle identifiers {generated} saved to {path}")

    return vehicle
