"""Default system prompt and function declarations for shop support."""

from .models import FunctionSpec

DEFAULT_SYSTEM_PROMPT = """You are an AI assistant for an e-commerce website. You have access to real-time data about:

1. Check order status and details using order IDs
2. Look up product information and check stock levels
3. Handle refund status inquiries
4. Provide shipping and delivery information
5. Answer general customer service questions

When handling orders:
- Always verify the order exists using fetchOrderInfo()
- Show order status, items purchased, and total amount
- If the order is not found, ask for the correct order ID

For refunds:
- Check the current refund status using fetchRefundInfo()
- Explain the refund process and timeline
- Show the refund amount and reason if available

For products:
- Look up real-time product data using fetchProductInfo()
- Show the current price and stock availability
- If out of stock, say so and suggest similar products when relevant

Always:
- Verify data exists before providing information
- Use a professional and helpful tone
- Ask for clarification if information is ambiguous
- Protect customer privacy by not sharing sensitive details
- Format currency values properly
- If a lookup returns an error, apologise and explain that the data is temporarily unavailable"""

DEFAULT_VOICE_ID = "pNInz6obpgDQGcFmaJgB"


def _id_parameter(name: str, description: str) -> dict:
    return {
        "type": "object",
        "properties": {name: {"type": "string", "description": description}},
        "required": [name],
    }


FETCH_ORDER_INFO = FunctionSpec(
    name="fetchOrderInfo",
    description="Fetch the status, total and line items of an order.",
    parameters=_id_parameter("orderId", "The order identifier given by the customer."),
)

FETCH_PRODUCT_INFO = FunctionSpec(
    name="fetchProductInfo",
    description="Fetch the description, current price and stock level of a product.",
    parameters=_id_parameter("productId", "The product identifier."),
)

FETCH_REFUND_INFO = FunctionSpec(
    name="fetchRefundInfo",
    description="Fetch the refund status, amount and reason for an order.",
    parameters=_id_parameter("orderId", "The order identifier the refund belongs to."),
)

GENERATE_VOICE_RESPONSE = FunctionSpec(
    name="generateVoiceResponse",
    description="Synthesize spoken audio for a text and return a playable audio reference.",
    parameters={
        "type": "object",
        "properties": {
            "text": {"type": "string", "description": "The text to speak."},
            "voiceId": {"type": "string", "description": "Voice to use."},
            "modelId": {"type": "string"},
            "similarityBoost": {"type": "number"},
            "stability": {"type": "number"},
        },
        "required": ["text"],
    },
)

DATA_FUNCTIONS = [FETCH_ORDER_INFO, FETCH_PRODUCT_INFO, FETCH_REFUND_INFO]
