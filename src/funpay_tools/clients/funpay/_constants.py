"""Shared constants for the FunPay client."""

DEFAULT_BASE_URL = "https://funpay.com"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_AVATAR_PATH = "/img/layout/avatar.png"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/141.0.0.0 Safari/537.36"
)

HTTP_BAD_REQUEST = 400

ORDERS_PATH = "/orders/trade"
CHATS_PATH = "/chats"
CHAT_THREAD_PATH = "/chats/{resource_id}"
BALANCE_PATH = "/account/balance"
PROFILE_PATH = "/users/{resource_id}/"

ACCEPT_ORDER_PATH = "/orders/accept"
CANCEL_ORDER_PATH = "/orders/cancel"
DELIVER_ORDER_PATH = "/orders/deliver"
SEND_MESSAGE_PATH = "/orders/message"
OFFER_UPDATE_PATH = "/trade/offer/update"
OFFER_TOGGLE_PATH = "/trade/offer/toggle"
