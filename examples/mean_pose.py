"""Example of fusing several sensor-to-world pose estimates into one.

This example demonstrates:
1. Building poses from quaternions, matrices and odometry records
2. Chaining a body pose with a sensor extrinsic
3. Averaging noisy estimates with the component-wise and geodesic averagers
"""

import logging
from types import SimpleNamespace

import numpy as np

from rigidpose import GeodesicAverager, Pose, compute_mean_pose
from rigidpose.utils.geometry import rotation_matrix, rotation_quaternion


def main() -> None:
    """Run pose averaging example."""
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    print("rigidpose averaging example")
    print("=" * 50)

    # Body pose in the world frame, as an odometry record would report it
    q = rotation_quaternion("z", 45.0)
    odom = SimpleNamespace(
        pose=SimpleNamespace(
            pose=SimpleNamespace(
                position=SimpleNamespace(x=2.0, y=1.0, z=0.0),
                orientation=SimpleNamespace(x=q[1], y=q[2], z=q[3], w=q[0]),
            )
        )
    )
    body_in_world = Pose.from_odometry(odom)
    print(f"\n1. Body in world:   {body_in_world}")

    # Camera extrinsic relative to the body
    camera_in_body = Pose.from_rotation_matrix(rotation_matrix("x", -90.0), [0.1, 0.0, 0.3])
    camera_in_world = body_in_world * camera_in_body
    print(f"2. Camera in world: {camera_in_world}")

    # Perturb the camera pose to mimic several independent estimates
    rng = np.random.default_rng(0)
    weighted = []
    for _ in range(5):
        noise = Pose(
            rotation=rotation_quaternion(rng.normal(size=3), rng.normal(scale=2.0)),
            translation=rng.normal(scale=0.05, size=3),
        )
        weighted.append((float(rng.uniform(0.5, 1.5)), camera_in_world * noise))

    print("\n3. Averaging estimates...")
    componentwise = compute_mean_pose(weighted)
    geodesic = compute_mean_pose(weighted, averager=GeodesicAverager())

    print(f"   Component-wise: {componentwise}")
    print(f"   Geodesic:       {geodesic}")
    print(
        "   Difference between strategies: "
        f"{np.rad2deg(componentwise.angular_distance(geodesic)):.6f} deg"
    )
    print(
        "   Error to ground truth: "
        f"{np.rad2deg(geodesic.angular_distance(camera_in_world)):.3f} deg, "
        f"{np.linalg.norm(geodesic.translation - camera_in_world.translation):.3f} m"
    )


if __name__ == "__main__":
    main()
