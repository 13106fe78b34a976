"""Instruction text and response schema for statement extraction."""
from google.genai import types

EXTRACTION_PROMPT = """You are a financial assistant specialised in Brazilian bank statements.

Analyze the attached bank statement document (an image or a PDF).

Task 1: identify the full name of the account holder (client) and return it as 'clientName'.
Task 2: extract EVERY transaction that represents money coming into the account (a credit)
from a third party, such as deposits, received transfers (PIX, TED, DOC) and salary payments.

For each transaction provide:
- description: the transaction description as printed (e.g. 'SALARIO', 'TRANSF PIX', 'DEPOSITO')
- amount: a plain JSON number
- date: the transaction date in YYYY-MM-DD format

AMOUNTS:
Brazilian statements use a comma as the decimal separator and a dot for thousands
(e.g. 'R$ 1.234,56'). Convert every amount to a plain number such as 1234.56.
Remove the 'R$' symbol and any other currency formatting.

EXCLUSION RULES:
1. Ignore all outgoing transactions (debits): payments, withdrawals, debit card purchases
   and transfers sent.
2. Ignore credits that are redemptions of the holder's own financial investments, with
   descriptions such as "RESGATE APLICACAO", "RESGATE CDB" or "resgates de aplicações
   financeira RBD". These are not new income.
3. Ignore credits that are transfers between accounts of the same holder. Once you know
   'clientName', ignore any PIX or TED received whose sender is the account holder.
   Common descriptions are 'TRANSF MESMA TITULARIDADE', 'TED C', or a description whose
   sender name equals 'clientName'.

Only include credits that represent real income from THIRD PARTIES.

Return strictly the requested JSON object with 'clientName' and a list of 'entries'.
If there are no qualifying credits, return an empty list for 'entries' but still try to
provide 'clientName'. If the client name cannot be found, return an empty string for
'clientName' instead of omitting it.
"""

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "clientName": types.Schema(
            type=types.Type.STRING,
            description="Full name of the account holder as printed on the statement."
        ),
        "entries": types.Schema(
            type=types.Type.ARRAY,
            description="Every credit transaction on the statement that represents real income.",
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "description": types.Schema(
                        type=types.Type.STRING,
                        description="Credit description (e.g. 'SALARIO', 'TRANSF PIX', 'DEPOSITO')."
                    ),
                    "amount": types.Schema(
                        type=types.Type.NUMBER,
                        description="Numeric value of the credit."
                    ),
                    "date": types.Schema(
                        type=types.Type.STRING,
                        description="Transaction date in YYYY-MM-DD format."
                    ),
                },
                required=["description", "amount", "date"]
            )
        ),
    },
    required=["clientName", "entries"]
)


def build_generation_config(temperature: float = 0.0) -> types.GenerateContentConfig:
    """Structured JSON output configuration for the extraction call."""
    return types.GenerateContentConfig(
        response_mime_type="application/json",
        response_schema=RESPONSE_SCHEMA,
        temperature=temperature
    )
