# Simulation Configuration
from ecosignal.domain.models import WeatherPreset

# Canvas Geometry
CANVAS_WIDTH = 800.0
CANVAS_HEIGHT = 800.0
CENTER_X = CANVAS_WIDTH / 2
CENTER_Y = CANVAS_HEIGHT / 2
LANE_OFFSET = 35.0       # Lateral offset of a lane from the road axis
SPAWN_OFFSET = 100.0     # Entry points sit this far outside the canvas
BOUNDS_MARGIN = 200.0    # Vehicles beyond canvas +/- margin are removed
STOP_ZONE_NEAR = 80.0    # Stop zone band, measured back from the center
STOP_ZONE_FAR = 160.0

# Signal Timings (seconds)
MIN_GREEN_TIME = 10
MAX_GREEN_TIME = 30
YELLOW_TIME = 3
SHORT_EXTENSION = 5
LONG_EXTENSION = 10

# Vehicle Physics (per frame)
ACCELERATION = 0.05
BRAKING_FORCE = 0.15
STOP_THRESHOLD = 0.1
ACCEL_EPSILON = 0.01
MIN_GAP = 75.0
HEAVY_MIN_GAP = 100.0
LATERAL_TOLERANCE = 20.0
SPAWN_CLEARANCE = 100.0
HEAVY_PROBABILITY = 0.15
SPEED_FACTOR_MIN = 0.8
SPEED_FACTOR_SPAN = 0.4
CAR_LENGTH = 40.0
TRUCK_LENGTH = 70.0

# Emissions (grams CO2 per second)
CO2_IDLE = 0.6
CO2_RUNNING = 1.2
CO2_ACCEL = 2.8
CO2_HEAVY_MULT = 2.5

# Reward Shaping
REWARD_VEHICLE_PASSED = 10.0
REWARD_QUEUE_PENALTY = -0.5
REWARD_EMISSION_PENALTY = -0.05

# Learning
EPISODE_HORIZON = 100    # Decisions per episode
REWARD_HISTORY_SIZE = 50
DEFAULT_ACTION = 0       # Used for forced yellow->green and degraded mode
ACTIONS = ["Switch Phase", "Extend 5s", "Extend 10s"]
OBSERVATION_SIZE = 12
GAMMA = 0.95
LEARNING_RATE = 0.001
INITIAL_EPSILON = 1.0
EPSILON_MIN = 0.05
EPSILON_DECAY = 0.995
BATCH_SIZE = 32
MEMORY_SIZE = 5000
TARGET_UPDATE_EVERY = 20  # Learn steps between target network syncs
LOSS_WINDOW = 100

# Runtime Cadence
MAX_FRAME_DT = 0.1       # Seconds; longer frames are truncated, not replayed
TARGET_FPS = 60
DECISION_INTERVAL = 1.0
SPAWN_INTERVAL = 1.4

# Weather Presets
DEFAULT_WEATHER = "SUNNY"
WEATHER = {
    "SUNNY": WeatherPreset(label="Sunny", speed=2.5, factor=0.0),
    "RAIN": WeatherPreset(label="Rain", speed=1.8, factor=0.5),
    "FOG": WeatherPreset(label="Fog", speed=1.3, factor=0.8),
}
