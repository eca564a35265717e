from contracts.alert import AlertEvent

RESPONSE_TIME_SUBJECT = "Monitoring Notification: Response Time"
ERROR_SUBJECT = "Monitoring Alert! Error"


def response_time_message(alert: AlertEvent) -> str:
    detail = alert.detail
    return (
        "Notification From StatusOk\n\n"
        "One of your apis response time is slower than expected.\n"
        "Please find the Details below\n\n"
        f"Url: {alert.url}\n"
        f"RequestType: {alert.request_type}\n"
        f"Current Median Response Time: {detail.observed_median_ms} ms\n"
        f"Expected Response Time: {detail.expected_latency_ms} ms\n\n"
        "Thanks"
    )


def error_message(alert: AlertEvent) -> str:
    detail = alert.detail
    return (
        "Notification From StatusOk\n\n"
        "We are getting error when we try to send request to one of your apis\n"
        "Please find the Details below\n\n"
        f"Url: {alert.url}\n"
        f"RequestType: {alert.request_type}\n"
        f"Error Message: {detail.reason}\n"
        f"Response Code: {detail.response_code}\n"
        f"Response Body: {detail.response_body}\n"
        f"Other Info: {detail.other_info}\n\n"
        "Thanks"
    )


def alert_message(alert: AlertEvent) -> str:
    if alert.is_failure:
        return error_message(alert)
    return response_time_message(alert)
