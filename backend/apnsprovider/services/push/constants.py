"""
Constants for the APNS token-based provider.
"""

# APNS Hosts
APNS_PRODUCTION_HOST = "api.push.apple.com"
APNS_SANDBOX_HOST = "api.sandbox.push.apple.com"
APNS_PORT = 443

# APNS API path
APNS_DEVICE_PATH = "/3/device/{device_token}"
APNS_URL_TEMPLATE = "https://{host}:{port}" + APNS_DEVICE_PATH

# Header names
APNS_ID_HEADER = "apns-id"
APNS_TOPIC_HEADER = "apns-topic"
APNS_PUSH_TYPE_HEADER = "apns-push-type"
APNS_EXPIRATION_HEADER = "apns-expiration"

# Only alert pushes are sent; expiration 0 means deliver now or drop
APNS_PUSH_TYPE_ALERT = "alert"
APNS_EXPIRATION_IMMEDIATE = "0"
APNS_CONTENT_TYPE = "application/json"

# JWT configuration
JWT_ALGORITHM = "ES256"
JWT_CURVE_NAME = "secp256r1"

# APNS rejects tokens refreshed more than once every 20 minutes
# and tokens older than 60 minutes.
JWT_RENEW_MIN_MINUTES = 20
JWT_RENEW_MAX_MINUTES = 59
JWT_RENEW_DEFAULT_MINUTES = 45

# Payload limits (bytes)
PAYLOAD_MAX_SIZE = 4096
PAYLOAD_MAX_SIZE_VOIP = 5120
PAYLOAD_RESERVED_KEY = "aps"
DEFAULT_SOUND = "default"

# Transport
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0

# Reason returned with 403 when the provider token is older than one hour
APNS_REASON_EXPIRED_TOKEN = "ExpiredProviderToken"

# APNS Error Codes (from the JSON "reason" field)
APNS_ERROR_CODES = {
    # Client errors
    "BadCollapseId": "The collapse identifier exceeds the maximum allowed size",
    "BadDeviceToken": "The specified device token is invalid",
    "BadExpirationDate": "The apns-expiration value is invalid",
    "BadMessageId": "The apns-id value is invalid",
    "BadPriority": "The apns-priority value is invalid",
    "BadTopic": "The apns-topic value is invalid",
    "DeviceTokenNotForTopic": "The device token doesn't match the specified topic",
    "DuplicateHeaders": "One or more headers are repeated",
    "IdleTimeout": "Idle timeout",
    "InvalidPushType": "The apns-push-type value is invalid",
    "MissingDeviceToken": "The device token is not specified in the request path",
    "MissingTopic": "The apns-topic header is missing from the request",
    "PayloadEmpty": "The message payload is empty",
    "PayloadTooLarge": "The message payload is too large",
    "TopicDisallowed": "Pushing to this topic is not allowed",

    # Token errors
    "ExpiredProviderToken": "The provider token is stale and a new token should be generated",
    "Forbidden": "The specified action is not allowed",
    "InvalidProviderToken": "The provider token is not valid or the token signature cannot be verified",
    "MissingProviderToken": "No provider certificate was used to connect to APNs",

    # Device token errors
    "Unregistered": "The device token is no longer active for the topic",

    # Server errors
    "TooManyProviderTokenUpdates": "The provider token has been updated too often",
    "TooManyRequests": "Too many requests were made consecutively to the same device token",
    "InternalServerError": "An internal server error occurred",
    "ServiceUnavailable": "The service is unavailable",
    "Shutdown": "The server is shutting down",
}
