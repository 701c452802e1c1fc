def two_wheel_description(half_track=0.03, radius=0.01, max_w=10.0, sensors=None):
    """Symmetric differential mouse: wheels mirrored left/right of the forward axis."""
    wheel = {
        "direction": 0.0,
        "radius": radius,
        "width": 0.004,
        "max_angular_velocity": max_w,
        "encoder_type": "relative",
        "encoder_ticks_per_revolution": 100,
    }
    return {
        "body": [[0.04, 0.03], [-0.03, 0.03], [-0.03, -0.03], [0.04, -0.03]],
        "wheels": {
            "left": dict(wheel, position=[0.0, half_track]),
            "right": dict(wheel, position=[0.0, -half_track]),
        },
        "sensors": sensors or {},
    }


def front_sensor(range_m=0.25, half_width=5.0):
    return {
        "front": {
            "position": [0.04, 0.0],
            "direction": 0.0,
            "radius": 0.003,
            "range": range_m,
            "half_width": half_width,
            "read_duration": 0.001,
        }
    }
