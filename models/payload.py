# models/payload.py
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, TypeAdapter

Int64 = Annotated[StrictInt, Field(ge=-2 ** 63, le=2 ** 63 - 1)]


class ImpressionRecord(BaseModel):
    """One impression as posted to the webhook. Field names match the JSON keys."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    key: StrictStr
    split: StrictStr
    environmentId: StrictStr
    environmentName: StrictStr
    treatment: StrictStr
    time: Int64
    label: StrictStr
    splitVersionNumber: Int64
    sdk: StrictStr
    sdkVersion: StrictStr

    def to_row(self) -> Dict[str, Any]:
        """Insert parameters keyed by column name of the Impressions table."""
        return {
            "Key": self.key,
            "Split": self.split,
            "EnvironmentId": self.environmentId,
            "EnvironmentName": self.environmentName,
            "Treatment": self.treatment,
            "Time": self.time,
            "Label": self.label,
            "SplitVersionNumber": self.splitVersionNumber,
            "Sdk": self.sdk,
            "SdkVersion": self.sdkVersion,
        }


# A top level JSON null is accepted and treated like an empty array.
ImpressionBatch = TypeAdapter(Optional[List[ImpressionRecord]])
