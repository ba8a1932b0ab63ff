import csv
import random

def generate_mock_vehicles(filename="mock_vehicles.csv", count=20):
    with open(filename, mode='w', newline='') as file:
        writer = csv.writer(file)
        writer.writerow(["vehicle_id", "name", "capacity"])

        for i in range(count):
            vehicle_id = f"VEH-{str(i+1).zfill(3)}"

            # Sedans seat 4, the odd minibus seats 6
            capacity = 6 if random.random() < 0.2 else 4

            writer.writerow([vehicle_id, f"Shuttle {i+1}", capacity])

    print(f"Successfully generated {count} mock vehicles into '{filename}'.")

if __name__ == "__main__":
    generate_mock_vehicles()
