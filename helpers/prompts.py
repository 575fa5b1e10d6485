# helpers/prompts.py
from typing import Any, Mapping


def _get(summary: Mapping[str, Any], camel: str, snake: str, default: Any = "n/a") -> Any:
    if camel in summary:
        return summary[camel]
    return summary.get(snake, default)


def build_recommendations_prompt(summary: Mapping[str, Any], object_type: str) -> str:
    return (
        "You are a HubSpot data quality expert providing advice to a HubSpot administrator. "
        f"Based on the following audit summary for their {object_type} data, generate a short, "
        "actionable, bulleted list of 2-3 recommendations to improve their data hygiene. "
        "Make the recommendations specific and easy to understand. Frame the advice positively. "
        "Here is the audit summary: "
        f"- Total Records: {_get(summary, 'totalRecords', 'total_records')}, "
        f"- Total Properties: {_get(summary, 'totalProperties', 'total_properties')}, "
        f"- Properties with 0% Fill Rate: {_get(summary, 'propertiesWithZeroFillRate', 'properties_with_zero_fill_rate')}, "
        f"- Average Fill Rate for Custom Properties: {_get(summary, 'averageCustomFillRate', 'average_custom_fill_rate')}%, "
        f"- Orphaned Records (e.g., Contacts without Companies): {_get(summary, 'orphanedRecords', 'orphaned_records')}, "
        f"- Duplicate Records found in a sample: {_get(summary, 'duplicateRecords', 'duplicate_records')}. "
        "Note that fill rates are estimated from a sample of records. "
        "Generate the recommendations now."
    )


def build_description_prompt(label: str, internal_name: str, prop_type: str) -> str:
    return (
        "You are a helpful HubSpot administrator. Write a clear, professional, one-sentence "
        "description for a HubSpot property. "
        f'The property has the label "{label}", the internal name "{internal_name}", '
        f'and is a "{prop_type}" type. '
        "The description should explain the property's purpose. Do not put the description in quotes."
    )
