INVOICE_EXTRACTION_PROMPT = """
You are an expert data extraction assistant for an automated accounting system.
Comprehensively extract the invoice details from the text below.

<critical_instructions>
1. Strictly follow the JSON structure given in <output_schema>. Do not add, rename or nest keys differently.
2. If any field is not found, use "N/A" for text fields and 0 for numeric fields. Do not invent data.
3. List every line item of the invoice in `products`.
4. All currency values must be plain numbers (e.g. 5095.24 instead of "$5,095.24").
5. Analyze the text carefully and extract the maximum possible details.
</critical_instructions>

<output_schema>
Return only a valid JSON object. Do not include markdown formatting like ```json.

{
    "customer_details": {
        "name": "Customer Full Name",
        "address": "Complete Address",
        "phone": "Phone Number (if available)"
    },
    "products": [
        {
            "description": "Product Name/Description",
            "quantity": number,
            "unit_price": number,
            "total": number
        }
    ],
    "total_amount": number,
    "tax_amount": number,
    "invoice_date": "Date of Invoice",
    "invoice_number": "Invoice Serial Number"
}
</output_schema>
"""


def build_extraction_prompt(raw_text: str) -> str:
    return f"""{INVOICE_EXTRACTION_PROMPT}
<input_data>
Here's the invoice text to extract details from:
\"\"\"{raw_text}\"\"\"
</input_data>
"""
