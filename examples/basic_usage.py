# Basic usage example (needs root and the loop driver)

from loopvol import VolumeConfig, VolumeManager
from loopvol.errors import VolumeError


def main():
    # Initialize manager (environment variables override defaults)
    manager = VolumeManager(VolumeConfig.from_env())

    try:
        # Create a volume
        result = manager.create("demo-001")

        print(f"✓ Volume created: {result.volume.name}")
        print(f"  Backing file: {result.volume.backing_path}")
        print(f"  Device: {result.volume.device_path}")
        for ignored in result.ignored_errors:
            print(f"  (ignored) {ignored.message}")

        # List volumes
        print(f"Volumes: {[record.name for record in manager.list()]}")

        # Remove it again
        manager.remove("demo-001")
        print("✓ Volume removed")

    except VolumeError as e:
        print(f"\n❗ Error: {e}")


if __name__ == "__main__":
    main()
