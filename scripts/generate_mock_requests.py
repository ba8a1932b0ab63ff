import pandas as pd
import numpy as np
import uuid
from datetime import datetime, timezone, timedelta

# Robert Gabriel Mugabe International, Harare
AIRPORT_LAT = -17.9318
AIRPORT_LON = 31.0928

def generate_mock_requests(num_requests=200, num_destinations=25, output_file="mock_airport_requests.csv"):
    """
    Generates a burst of airport ride requests designed to exercise pooling.
    Most passengers leave the terminal for one of a fixed set of city
    destinations (hotels, suburbs), so several requests end up near each
    other and can share a vehicle. A minority head back to the airport.
    """
    # City centre, ~15km north-west of the airport
    CENTER_LAT = -17.824858
    CENTER_LON = 31.053028

    # 1. Fixed destinations to create pooling opportunities
    destinations = []
    for destination_index in range(num_destinations):
        # Spread within ~8km of the centre (roughly 0.07 degrees)
        destinations.append({
            "id": f"d_{str(uuid.uuid4())[:8]}",
            "name": f"Destination {destination_index+1}",
            "lat": CENTER_LAT + np.random.uniform(-0.07, 0.07),
            "lon": CENTER_LON + np.random.uniform(-0.07, 0.07),
        })

    data = []
    now = datetime.now(timezone.utc)

    # 2. Generate requests
    for request_index in range(num_requests):
        destination = np.random.choice(destinations)

        # Kerbside spread at the terminal (~200m)
        terminal_lat = AIRPORT_LAT + np.random.uniform(-0.002, 0.002)
        terminal_lon = AIRPORT_LON + np.random.uniform(-0.002, 0.002)
        # Door-to-door spread around the destination (~1km)
        city_lat = destination["lat"] + np.random.uniform(-0.01, 0.01)
        city_lon = destination["lon"] + np.random.uniform(-0.01, 0.01)

        to_airport = np.random.random() < 0.2
        if to_airport:
            pickup, dropoff = (city_lat, city_lon), (terminal_lat, terminal_lon)
        else:
            pickup, dropoff = (terminal_lat, terminal_lon), (city_lat, city_lon)

        data.append({
            "request_id": f"r_{str(request_index+1).zfill(6)}",
            "created_at": (now - timedelta(seconds=int(np.random.randint(0, 600)))).isoformat(),
            "user_id": f"u_{np.random.randint(1000, 9999)}",
            "direction": "TO_AIRPORT" if to_airport else "FROM_AIRPORT",
            "pickup_lat": np.round(pickup[0], 6),
            "pickup_lon": np.round(pickup[1], 6),
            "dropoff_lat": np.round(dropoff[0], 6),
            "dropoff_lon": np.round(dropoff[1], 6),
            "destination": destination["name"],
        })

    # 3. Save to CSV
    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"✅ Generated {num_requests} requests and saved to '{output_file}'")

    # Print a quick preview of pooling density
    print("\nTop 5 Destinations (Pooling Potential):")
    counts = df['destination'].value_counts().head(5)
    for name, count in counts.items():
        print(f"  {name}: {count} requests")

if __name__ == "__main__":
    generate_mock_requests(num_requests=200, num_destinations=25)
