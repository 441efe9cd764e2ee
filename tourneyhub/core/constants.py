"""Global constants for the tourneyhub application."""

# Collections
USERS = "users"
TEAMS = "teams"
TOURNAMENTS = "tournaments"
REGISTRATIONS = "registrations"
MATCHES = "matches"
BRACKETS = "brackets"
NOTIFICATIONS = "notifications"
AUDIT_LOGS = "auditLogs"

# Tournament status values
TOURNAMENT_DRAFT = "draft"
TOURNAMENT_REGISTRATION = "registration"
TOURNAMENT_LIVE = "live"
TOURNAMENT_COMPLETED = "completed"

# Registration payment status values
PAYMENT_PENDING = "pending"
PAYMENT_APPROVED = "approved"
PAYMENT_REJECTED = "rejected"

# User roles
ROLE_VIEWER = "viewer"
ROLE_PLAYER = "player"
ROLE_ORGANIZER = "organizer"
ROLE_ADMIN = "admin"
ROLES = (ROLE_VIEWER, ROLE_PLAYER, ROLE_ORGANIZER, ROLE_ADMIN)

# Bracket
BRACKET_TYPE_SINGLE_ELIMINATION = "single_elimination"
MIN_ENTRANTS = 2

# Actor recorded on audit logs written by background work
SYSTEM_USER_ID = "system"
SYSTEM_DISPLAY_NAME = "System"

# Room reveal defaults
ROOM_REVEAL_LEAD_MINUTES = 15
ROOM_REVEAL_INTERVAL_SECONDS = 300
