ENV_CFG = dict(
    # gc layout: base pos (3), base quat wxyz (4), then HAA/HFE/KFE for LF, RF, LH, RH
    init_pose=[
        0.0, 0.0, 0.50, 1.0, 0.0, 0.0, 0.0,
        0.03, 0.4, -0.8,
        -0.03, 0.4, -0.8,
        0.03, -0.4, 0.8,
        -0.03, -0.4, 0.8,
    ],
    kp=50.0, kd=0.2,
    action_std=0.3,                    # action mean defaults to the initial joint angles
    foot_bodies=("LF_SHANK", "RF_SHANK", "LH_SHANK", "RH_SHANK"),
    base_body="base",
    simulation_dt=0.0025,
    control_dt=0.01,
    init_noise_std=0.0,                # > 0 jitters the initial joint angles on reset
)

REWARD_CFG = dict(
    force_coeff=4e-5,
    velocity_coeff=0.3,
    velocity_cap=4.0,
    terminal_reward_coeff=0.0,
)

VIS_CFG = dict(
    camera_distance=2.5,
    record_fps=30,
    record_size=(480, 640),            # (height, width)
)
