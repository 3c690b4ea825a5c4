"""
Marketplace Load Simulation

Drives the full order lifecycle against a running server with many
concurrent clients: one owner opens a restaurant, clients sign up and
order, the owner cooks every order and a pool of drivers delivers them.

Run from project root: python scripts/simulate.py --clients 20

Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import datetime
from typing import Any, Optional

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

API_BASE_URL = "http://localhost:8001"
PASSWORD = "simulation"

MENU = [
    {
        "name": "Margherita",
        "price": 10,
        "options": [
            {"name": "Size", "choices": [{"name": "S"}, {"name": "L", "extra": 2}]},
            {"name": "Extra cheese", "extra": 1.5},
        ],
    },
    {"name": "Pepperoni", "price": 12},
    {"name": "Tiramisu", "price": 6.5},
]


def random_email(role: str) -> str:
    return f"{role.lower()}-{uuid.uuid4().hex[:10]}@eats.io"


def random_selections(dish: dict[str, Any]) -> list[dict[str, Optional[str]]]:
    """Pick some options of ``dish`` at random."""
    selections = []
    for option in dish.get("options") or []:
        if random.random() < 0.5:
            continue
        choices = option.get("choices") or []
        choice = random.choice(choices)["name"] if choices else None
        selections.append({"name": option["name"], "choice": choice})
    return selections


async def sign_up(client: httpx.AsyncClient, role: str) -> dict[str, str]:
    """Create an account and return the auth header for it."""
    email = random_email(role)
    response = await client.post(
        f"{API_BASE_URL}/users",
        json={"email": email, "password": PASSWORD, "role": role},
    )
    response.raise_for_status()
    if not response.json()["ok"]:
        raise RuntimeError(response.json()["error"])

    response = await client.post(
        f"{API_BASE_URL}/users/login",
        json={"email": email, "password": PASSWORD},
    )
    response.raise_for_status()
    return {"x-jwt": response.json()["token"]}


async def open_restaurant(client: httpx.AsyncClient, owner: dict[str, str]) -> dict[str, Any]:
    """Create a restaurant with the sample menu and return it."""
    name = f"Pizza Place {uuid.uuid4().hex[:6]}"
    response = await client.post(
        f"{API_BASE_URL}/restaurants",
        headers=owner,
        json={"name": name, "address": "1 Main St", "category_name": "Italian"},
    )
    response.raise_for_status()

    mine = await client.get(f"{API_BASE_URL}/restaurants/mine", headers=owner)
    restaurant_id = next(r["id"] for r in mine.json()["restaurants"] if r["name"] == name)

    for dish in MENU:
        response = await client.post(
            f"{API_BASE_URL}/dishes",
            headers=owner,
            json={"restaurant_id": restaurant_id, **dish},
        )
        response.raise_for_status()

    detail = await client.get(f"{API_BASE_URL}/restaurants/{restaurant_id}")
    return detail.json()["restaurant"]


async def place_order(
    client: httpx.AsyncClient,
    client_num: int,
    restaurant: dict[str, Any],
) -> dict[str, Any]:
    """Sign a new client up and have them order a few dishes."""
    start_time = time.time()
    try:
        headers = await sign_up(client, "Client")
        menu = restaurant["menu"]
        items = [
            {"dish_id": dish["id"], "options": random_selections(dish)}
            for dish in random.sample(menu, k=random.randint(1, len(menu)))
        ]
        response = await client.post(
            f"{API_BASE_URL}/orders",
            headers=headers,
            json={"restaurant_id": restaurant["id"], "items": items},
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)
        data = response.json()

        if response.status_code == 200 and data.get("ok"):
            orders = await client.get(f"{API_BASE_URL}/orders", headers=headers)
            order = orders.json()["orders"][0]
            return {
                "client_num": client_num,
                "success": True,
                "order_id": order["id"],
                "total": order["total"],
                "time": elapsed,
            }
        return {
            "client_num": client_num,
            "success": False,
            "error": str(data.get("error") or data)[:100],
            "time": elapsed,
        }
    except (httpx.HTTPError, RuntimeError, KeyError) as e:
        return {
            "client_num": client_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


async def move_order(
    client: httpx.AsyncClient,
    headers: dict[str, str],
    order_id: int,
    status: str,
) -> bool:
    response = await client.patch(
        f"{API_BASE_URL}/orders/{order_id}",
        headers=headers,
        json={"status": status},
    )
    return response.status_code == 200 and response.json().get("ok", False)


async def deliver(
    client: httpx.AsyncClient,
    owner: dict[str, str],
    driver: dict[str, str],
    order_id: int,
) -> bool:
    """Walk one order from the kitchen to the customer's door."""
    steps = [
        (owner, "Cooking"),
        (owner, "Cooked"),
        (driver, "PickedUp"),
        (driver, "Deleverd"),
    ]
    for headers, status in steps:
        if not await move_order(client, headers, order_id, status):
            return False
    return True


async def run_simulation(num_clients: int, num_drivers: int) -> dict[str, Any]:
    print("=" * 70)
    print("MARKETPLACE SIMULATION")
    print("=" * 70)
    print(f"Clients: {num_clients}")
    print(f"Drivers: {num_drivers}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        owner = await sign_up(client, "Owner")
        restaurant = await open_restaurant(client, owner)
        print(f"\nRestaurant #{restaurant['id']} '{restaurant['name']}' opened "
              f"with {len(restaurant['menu'])} dishes")

        print("\nPlacing orders...\n")
        results = await asyncio.gather(
            *[place_order(client, i + 1, restaurant) for i in range(num_clients)]
        )

        drivers = await asyncio.gather(*[sign_up(client, "Delivery") for _ in range(num_drivers)])
        placed = [r for r in results if r["success"]]

        print("Cooking and delivering...\n")
        delivered = await asyncio.gather(*[
            deliver(client, owner, drivers[n % len(drivers)], r["order_id"])
            for n, r in enumerate(placed)
        ])

    total_time = round(time.time() - start_time, 2)
    failed = [r for r in results if not r["success"]]

    print("=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nOrders placed: {len(placed)}/{num_clients}")
    print(f"Orders delivered: {sum(delivered)}/{len(placed)}")
    print(f"Total Time: {total_time}s")

    if placed:
        avg_time = round(sum(r["time"] for r in placed) / len(placed), 3)
        print("\nPerformance Metrics:")
        print(f"   Average order response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in placed)}s")
        print(f"   Slowest: {max(r['time'] for r in placed)}s")
        print(f"   Total Revenue: ${sum(r['total'] for r in placed):.2f}")

    if failed:
        print("\nFailed Orders (showing first 5):")
        for f in failed[:5]:
            print(f"   Client #{f['client_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)
    return {
        "total": num_clients,
        "placed": len(placed),
        "delivered": sum(delivered),
        "total_time": total_time,
    }


async def preflight() -> bool:
    """Check the server is up before starting the load."""
    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(f"{API_BASE_URL}/health")
        except httpx.HTTPError as e:
            print(f"Server unreachable: {e}")
            return False

    data = response.json()
    print(f"Health: {data.get('status')}")
    print(f"   Database: {data.get('database')}")
    print(f"   Redis: {data.get('redis')}")
    return data.get("database") == "healthy"


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Marketplace Load Simulation")
    parser.add_argument("--clients", type=int, default=20, help="Number of concurrent clients")
    parser.add_argument("--drivers", type=int, default=3, help="Number of delivery drivers")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not asyncio.run(preflight()):
        print("\nPre-flight check failed. Start the API before running the simulation.")
        sys.exit(1)

    asyncio.run(run_simulation(args.clients, args.drivers))
