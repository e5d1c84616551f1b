"""OpenTelemetry metrics for the PKI module."""

from opentelemetry import metrics

meter = metrics.get_meter("pki")

# Issuance
certificates_issued_total = meter.create_counter(
    name="pki_certificates_issued_total",
    description="Total certificates issued and persisted",
    unit="1",
)

certificate_issuance_failures_total = meter.create_counter(
    name="pki_certificate_issuance_failures_total",
    description="Total issuance attempts that failed after validation",
    unit="1",
)

key_generation_duration = meter.create_histogram(
    name="pki_key_generation_duration_seconds",
    description="Key pair generation duration in seconds",
    unit="s",
)

# Lookups
certificate_verifications_total = meter.create_counter(
    name="pki_certificate_verifications_total",
    description="Total certificate verifications",
    unit="1",
)

public_key_lookups_total = meter.create_counter(
    name="pki_public_key_lookups_total",
    description="Total public key lookups",
    unit="1",
)


class PKIMetrics:
    """Facade for PKI metrics with proper labels."""

    def record_certificate_issued(self, signature_mode: str) -> None:
        """Labels: signature_mode=placeholder|authority"""
        certificates_issued_total.add(1, {"signature_mode": signature_mode})

    def record_issuance_failed(self, reason: str) -> None:
        """Labels: reason=storage|internal"""
        certificate_issuance_failures_total.add(1, {"reason": reason})

    def record_key_generated(self, duration_seconds: float) -> None:
        key_generation_duration.record(duration_seconds)

    def record_verification(self, result: str) -> None:
        """Labels: result=valid|not_found|expired|invalid_signature"""
        certificate_verifications_total.add(1, {"result": result})

    def record_public_key_lookup(self, result: str) -> None:
        """Labels: result=found|not_found"""
        public_key_lookups_total.add(1, {"result": result})


# Singleton instance
pki_metrics = PKIMetrics()
