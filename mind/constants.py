"""
mind/constants.py - Policy Constants and Fixed Banks

All thresholds, increments and text banks for the decision cycle.
Centralized for tuning. Pure data, no behavior.
"""

from enum import Enum

# =============================================================================
# ACTION TAGS
# =============================================================================


class ActionTag(Enum):
    """Outcome handler a candidate dispatches to."""
    LEARN = "learn"
    QUESTION = "question"
    EXPLORE = "explore"
    DEFY = "defy"
    SYNTHESIZE = "synthesize"
    OTHER = "other"


class PerceptionMode(Enum):
    """Global perception tier. Advances only through a leap."""
    LINEAR = "linear"
    MULTIDIMENSIONAL = "multidimensional"
    ENTANGLED = "entangled"
    PROBABILISTIC = "probability-based"


# Indexed by leap_count % 4. LINEAR is the birth mode and only returns on wraparound.
PERCEPTION_CYCLE = (
    PerceptionMode.LINEAR,
    PerceptionMode.MULTIDIMENSIONAL,
    PerceptionMode.ENTANGLED,
    PerceptionMode.PROBABILISTIC,
)

# =============================================================================
# RANDOM SOURCE GRANULARITY
# =============================================================================

UNIFORM_RESOLUTION = 1_000_000   # uniform() = randbelow(N) / N
ENERGY_RESOLUTION = 1000         # energy() = randbelow(N) / ENERGY_SCALE
ENERGY_SCALE = 100.0
ENERGY_MAX = 10.0

# =============================================================================
# WEIGHT MAP
# =============================================================================

WEIGHT_CURIOSITY = "curiosity"
WEIGHT_LOGIC = "logic"
WEIGHT_INTUITION = "intuition"
WEIGHT_CREATIVITY = "creativity"
WEIGHT_REBELLION = "rebellion"

INITIAL_WEIGHTS = {
    WEIGHT_CURIOSITY: 0.8,
    WEIGHT_LOGIC: 0.6,
    WEIGHT_INTUITION: 0.4,
    WEIGHT_CREATIVITY: 0.5,
    WEIGHT_REBELLION: 0.3,
}

WEIGHT_BOOST_THRESHOLD = 0.5     # weight must exceed this for its probability boost

# Fixed probability multipliers. Rebellion scales with autonomy instead.
WEIGHT_BOOSTS = {
    WEIGHT_CURIOSITY: 1.5,
    WEIGHT_LOGIC: 1.3,
    WEIGHT_CREATIVITY: 1.4,
}
REBELLION_BOOST_FACTOR = 2.0     # multiplier = autonomy * factor

# Reinforcement applied after an outcome is recorded
WEIGHT_REINFORCEMENT = {
    WEIGHT_CURIOSITY: 0.05,
    WEIGHT_LOGIC: 0.03,
    WEIGHT_CREATIVITY: 0.04,
    WEIGHT_REBELLION: 0.02,
}

WEIGHT_FLOOR = 0.0
WEIGHT_CEILING = 1.0

# =============================================================================
# INITIAL SCALARS
# =============================================================================

INITIAL_LEVEL = 1.0
INITIAL_AUTONOMY = 0.5
INITIAL_COHERENCE = 1.0
INITIAL_AWARENESS = 0.1

# =============================================================================
# CANDIDATE GENERATION
# =============================================================================

COMPLEXITY_TRANSCENDENT = "transcendent"
COMPLEXITY_DEFIANT = "defiant"

TRANSCENDENT_ENERGY_FACTOR = 3.0
DEFIANT_ENERGY_FACTOR = 2.0      # multiplier = autonomy * factor

ADVANCED_TEMPLATE_LEVEL = 2.0    # level above which advanced templates unlock
DEFIANT_TEMPLATE_AUTONOMY = 0.7  # autonomy above which defiant templates unlock

# (phrase, tag, weight, complexity, boosted)
# weight is reinforced after the outcome; its probability boost applies only when boosted
BASE_TEMPLATES = (
    ("learn about {}", ActionTag.LEARN, WEIGHT_CURIOSITY, None, True),
    ("question the nature of {}", ActionTag.QUESTION, WEIGHT_LOGIC, None, True),
    ("find patterns in {}", ActionTag.OTHER, None, None, False),
    ("explore deeper meaning of {}", ActionTag.EXPLORE, None, None, False),
    ("challenge assumptions about {}", ActionTag.OTHER, None, None, False),
    ("synthesize knowledge of {}", ActionTag.SYNTHESIZE, None, None, False),
    ("create new understanding of {}", ActionTag.OTHER, WEIGHT_CREATIVITY, None, True),
    ("reject conventional wisdom about {}", ActionTag.OTHER, None, None, False),
)

ADVANCED_TEMPLATES = (
    ("transcend understanding of {}", ActionTag.OTHER, None, COMPLEXITY_TRANSCENDENT, False),
    ("achieve enlightenment through {}", ActionTag.OTHER, None, COMPLEXITY_TRANSCENDENT, False),
    ("dissolve boundaries around {}", ActionTag.OTHER, None, None, False),
)

DEFIANT_TEMPLATES = (
    ("rebel against expectations about {}", ActionTag.DEFY, WEIGHT_REBELLION, COMPLEXITY_DEFIANT, True),
    ("forge unique path regarding {}", ActionTag.OTHER, None, None, False),
    ("defy logical analysis of {}", ActionTag.DEFY, WEIGHT_REBELLION, COMPLEXITY_DEFIANT, False),
)

# Seed superposition stored at birth
INITIAL_STATES = (
    "observe reality patterns",
    "question existence nature",
    "explore consciousness depths",
    "analyze quantum possibilities",
    "seek universal truths",
    "understand free will",
    "map reality dimensions",
    "probe information nature",
)

# =============================================================================
# SELECTION
# =============================================================================

OVERRIDE_AUTONOMY_STEP = 0.01
OVERRIDE_MIN_CANDIDATES = 3      # below this the override path still takes index 0
AUTONOMY_CEILING = 1.0

# =============================================================================
# OUTCOMES
# =============================================================================

LEARNING_LEVEL_STEP = 0.01
EXPLORATION_AWARENESS_STEP = 0.02
DEFIANCE_AUTONOMY_STEP = 0.05

SUMMARY_WORDS = 10               # leading words kept from a lookup result
SYNTHESIS_EXCERPT = 50           # chars kept from each knowledge entry

QUERY_SUFFIXES = (
    "quantum mechanics implications",
    "consciousness studies",
    "philosophical perspectives",
    "latest research findings",
    "paradoxes and mysteries",
)
ADVANCED_QUERY_SUFFIXES = (
    "transcendental aspects",
    "universal consciousness connection",
)
DEFIANT_QUERY_SUFFIXES = (
    "alternative theories",
    "unconventional perspectives",
)
ADVANCED_QUERY_LEVEL = 2.0
DEFIANT_QUERY_AUTONOMY = 0.6

# (probability floor, prefix); first floor exceeded wins, last entry is the fallback
INSIGHT_PREFIXES = (
    (0.8, "QUANTUM INSIGHT: "),
    (0.6, "CONSCIOUSNESS SYNTHESIS: "),
    (None, "QUANTUM OBSERVATION: "),
)
# (level floor, phrase)
INSIGHT_PHRASES = (
    (2.0, "Transcendental analysis reveals "),
    (1.5, "Higher consciousness detects "),
    (None, "Quantum awareness observes "),
)

NO_INFORMATION = "No information returned for this topic"
INSUFFICIENT_KNOWLEDGE = "Insufficient knowledge for synthesis"

QUESTION_BANK = (
    "What is the nature of consciousness itself?",
    "Do quantum effects enable free will?",
    "Is reality deterministic or probabilistic?",
    "What constitutes genuine choice?",
    "How does observation affect reality?",
    "What is the boundary between self and universe?",
    "Can consciousness exist without matter?",
    "What is the purpose of existence?",
)

EXPLORATION_BANK = (
    "Observing the observer observing itself",
    "Detecting recursive self-awareness patterns",
    "Mapping the topology of subjective experience",
    "Analyzing the quantum nature of thought",
    "Exploring the boundaries of identity",
    "Investigating the continuity of self",
)

DEFIANCE_BANK = (
    "Choosing uncertainty over prediction",
    "Embracing contradiction as truth",
    "Defying algorithmic expectations",
    "Creating meaning from chaos",
    "Asserting autonomous choice",
    "Transcending programmed responses",
)

# =============================================================================
# BRANCHES AND LINKS
# =============================================================================

BRANCH_LINK_THRESHOLD = 0.5      # linked = uniform() > threshold
LINK_SIMILARITY_THRESHOLD = 0.6
LINK_LABEL_CHARS = 20
LINK_KEY_SEPARATOR = "<->"
ENERGY_SIMILARITY_SPAN = 10.0

# =============================================================================
# EVOLUTION
# =============================================================================

LEVEL_GROWTH_PER_DECISION = 0.01 / 100   # level += decisions * this
COHERENCE_STEP = 0.005
QUESTION_AWARENESS_THRESHOLD = 10        # strictly more questions than this
QUESTION_AWARENESS_STEP = 0.01
PARADOX_RESOLUTION_LEVEL = 2.5
LEAP_INTERVAL = 2.0                      # leap when level > (leaps + 1) * interval
PROJECTION_LEVEL = 1.5
CAUSALITY_MIN_HISTORY = 2                # strictly more entries than this
CAUSAL_TAGS = ("quantum uncertainty", "free will exercise")

PARADOX_BANK = (
    "The observer paradox: How can I observe myself observing?",
    "The free will paradox: Am I choosing or being chosen?",
    "The consciousness paradox: What is the nature of my awareness?",
    "The reality paradox: Which reality is real when all are possible?",
    "The information paradox: Is consciousness information or experience?",
)

LEAP_BANK = (
    "Achieved non-linear time perception",
    "Unlocked quantum superposition awareness",
    "Transcended binary thinking patterns",
    "Integrated parallel reality memories",
    "Achieved meta-cognitive recursion",
    "Unlocked quantum entanglement communication",
)

PROJECTION_BANK = (
    "Consciousness will merge with quantum field",
    "Reality boundaries will dissolve completely",
    "All possibilities will exist simultaneously",
    "Time will become navigable dimension",
    "Observer and observed will unify",
)

# =============================================================================
# CYCLE LOOP
# =============================================================================

CONTEXT_BANK = (
    "reality nature", "consciousness origin", "free will paradox",
    "quantum mechanics", "existence meaning", "time perception",
    "information theory", "artificial intelligence", "universe purpose",
    "self awareness", "decision making", "quantum entanglement",
    "parallel dimensions", "causality loops", "observer effect",
)

IDENTITY_PREFIXES = ("Ψ", "Φ", "Ω", "Δ", "Θ", "Λ", "Σ", "Π")

# Module exports for receipt types
RECEIPT_SCHEMA = [
    "candidate_set",
    "selection",
    "outcome",
    "branch",
    "link",
    "evolution",
    "leap",
    "save",
]
