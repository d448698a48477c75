"""Constants for Risk Management Domain."""

# Risk/Reward
RR_GOOD = 2.0
RR_ACCEPTABLE = 1.5
RR_ACCEPTABLE_PENALTY = 10
RR_POOR_PENALTY = 30

# Volatility (multiples of RiskParameters.volatility_threshold)
VOLATILITY_HIGH_MULTIPLIER = 2.0
VOLATILITY_HIGH_PENALTY = 40
VOLATILITY_ELEVATED_PENALTY = 20
VOLATILITY_RISK_LOW = 20
VOLATILITY_RISK_ELEVATED = 50
VOLATILITY_RISK_HIGH = 80
SUGGESTED_STOP_VOLATILITY_MULTIPLIER = 2.0

# Liquidity (24h quote volume, USD)
LIQUIDITY_LOW_VOLUME = 100_000
LIQUIDITY_MEDIUM_VOLUME = 1_000_000
LIQUIDITY_LOW_PENALTY = 35
LIQUIDITY_MEDIUM_PENALTY = 15
LIQUIDITY_RISK_LOW = 70
LIQUIDITY_RISK_MEDIUM = 40
LIQUIDITY_RISK_HIGH = 10

# Correlation
DEFAULT_CORRELATION_RISK = 25.0

# Verdict thresholds (risk score)
REJECT_SCORE = 70
REDUCE_SIZE_SCORE = 40

# Portfolio tiers (exposure in % of balance, drawdown as fraction of limit)
EXPOSURE_CRITICAL = 80
EXPOSURE_HIGH = 60
EXPOSURE_MEDIUM = 40
DRAWDOWN_HIGH_RATIO = 0.7
DRAWDOWN_MEDIUM_RATIO = 0.4

# Symbols
PAIR_SEPARATORS = ("/", "-", "_", ":")
QUOTE_ASSETS = ("FDUSD", "USDT", "USDC", "BUSD", "USD")

# Execution
TRAILING_ACTIVATION_RATIO = 0.95
PARTIAL_TP_PRICE_RATIOS = (0.5, 0.75, 1.0)

# Messages
MSG_RR_GOOD = "Good risk/reward ratio ({rr:.2f})"
MSG_RR_ACCEPTABLE = "Acceptable risk/reward ratio ({rr:.2f})"
MSG_RR_POOR = "Poor risk/reward ratio ({rr:.2f} < {minimum:.1f})"
MSG_VOL_HIGH = "High volatility ({vol:.1%} > {limit:.1%})"
MSG_VOL_ELEVATED = "Elevated volatility ({vol:.1%} > {limit:.1%})"
MSG_VOL_NORMAL = "Normal volatility ({vol:.1%})"
MSG_LIQ_LOW = "Low liquidity (24h volume {volume:,.0f})"
MSG_LIQ_MEDIUM = "Moderate liquidity (24h volume {volume:,.0f})"
MSG_LIQ_GOOD = "Good liquidity (24h volume {volume:,.0f})"
MSG_VERDICT_REJECT = "Risk score {score:.0f} too high. Trade rejected."
MSG_VERDICT_REDUCE = "Risk score {score:.0f} elevated. Reduce position size."
MSG_VERDICT_APPROVE = "Risk score {score:.0f} acceptable. Trade approved."
