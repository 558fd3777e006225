"""Swagger/OpenAPI configuration for the application."""
from flask_swagger_ui import get_swaggerui_blueprint

# Swagger UI configuration
SWAGGER_URL = '/api/docs'
API_URL = '/api/swagger.json'

def get_swagger_blueprint():
    """Create and return swagger UI blueprint."""
    return get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={
            'app_name': "Smart Attendance Verification API",
            'defaultModelsExpandDepth': -1,
            'docExpansion': 'list',
            'filter': True,
            'supportedSubmitMethods': ['get', 'post', 'delete'],
            'validatorUrl': None,
        }
    )

def _ref(name):
    return {"$ref": f"#/components/schemas/{name}"}

def _json_body(properties, required=None):
    schema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return {
        "required": True,
        "content": {"application/json": {"schema": schema}}
    }

def _responses(ok_code="200", ok="Success", errors=None):
    responses = {ok_code: {"description": ok, "content": {"application/json": {"schema": _ref("Success")}}}}
    for code, description in (errors or {}).items():
        responses[code] = {"description": description, "content": {"application/json": {"schema": _ref("Error")}}}
    return responses

def _operation(tag, summary, responses, body=None, parameters=None):
    operation = {
        "tags": [tag],
        "summary": summary,
        "security": [{"bearerAuth": []}],
        "responses": responses
    }
    if body:
        operation["requestBody"] = body
    if parameters:
        operation["parameters"] = parameters
    return operation

ATTEMPT_ID = {"name": "attempt_id", "in": "path", "required": True, "schema": {"type": "string"}}
SESSION_ID = {"name": "session_id", "in": "path", "required": True, "schema": {"type": "integer"}}

def generate_swagger_spec():
    """Generate OpenAPI/Swagger specification."""
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "Smart Attendance Verification API",
            "description": "Sequential attendance verification: network proximity, geofence, face match, commit",
            "version": "1.0.0"
        },
        "servers": [
            {
                "url": "http://127.0.0.1:5000/api",
                "description": "Development server"
            }
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "bearerFormat": "JWT"
                }
            },
            "schemas": {
                "Session": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "class_ref": {"type": "string"},
                        "timeslot": {"type": "string"},
                        "ssid": {"type": "string"},
                        "status": {"type": "string", "enum": ["pending", "active", "closed"]},
                        "opened_at": {"type": "string", "format": "date-time"},
                        "late_after": {"type": "string", "format": "date-time"}
                    }
                },
                "Attempt": {
                    "type": "object",
                    "properties": {
                        "attempt_id": {"type": "string"},
                        "claimant_id": {"type": "integer"},
                        "session_id": {"type": "integer"},
                        "state": {
                            "type": "string",
                            "enum": [
                                "idle", "network_pending", "network_verified",
                                "location_pending", "location_verified",
                                "face_pending", "face_verified",
                                "committed", "failed", "cancelled"
                            ]
                        },
                        "steps": {"type": "object"},
                        "failure_reason": {"type": "string", "nullable": True},
                        "record_id": {"type": "integer", "nullable": True}
                    }
                },
                "AttendanceRecord": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "session_id": {"type": "integer"},
                        "claimant_id": {"type": "integer"},
                        "status": {"type": "string", "enum": ["present", "late", "absent"]},
                        "committed_at": {"type": "string", "format": "date-time"},
                        "evidence": {"type": "object"}
                    }
                },
                "Error": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "boolean", "default": True},
                        "kind": {"type": "string"},
                        "message": {"type": "string"},
                        "status_code": {"type": "integer"},
                        "details": {"type": "object"}
                    }
                },
                "Success": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "boolean", "default": False},
                        "message": {"type": "string"},
                        "data": {"type": "object"}
                    }
                }
            }
        },
        "paths": {
            "/attendance/sessions/active": {
                "get": _operation(
                    "Attendance", "Resolve the active session for a network name",
                    _responses(errors={"404": "NoActiveSession"}),
                    parameters=[{"name": "ssid", "in": "query", "schema": {"type": "string"}}]
                )
            },
            "/attendance/attempts": {
                "post": _operation(
                    "Attendance", "Start a verification attempt",
                    _responses("201", "Attempt started", {
                        "404": "NoActiveSession",
                        "409": "AttemptAlreadyCommitted"
                    }),
                    body=_json_body({"session_id": {"type": "integer"}}, ["session_id"])
                )
            },
            "/attendance/attempts/{attempt_id}": {
                "get": _operation(
                    "Attendance", "Current attempt state",
                    _responses(errors={"404": "AttemptNotFound"}),
                    parameters=[ATTEMPT_ID]
                ),
                "delete": _operation(
                    "Attendance", "Cancel an attempt",
                    _responses(errors={"404": "AttemptNotFound", "409": "InvalidStateTransition"}),
                    parameters=[ATTEMPT_ID]
                )
            },
            "/attendance/attempts/{attempt_id}/network": {
                "post": _operation(
                    "Attendance", "Submit network evidence",
                    _responses(errors={
                        "400": "NetworkMismatch / SubnetMismatch / InvalidEvidence",
                        "409": "InvalidStateTransition / StepAlreadyComplete"
                    }),
                    body=_json_body({
                        "ssid": {"type": "string"},
                        "ip_address": {"type": "string"},
                        "mac_address": {"type": "string"}
                    }, ["ssid", "ip_address"]),
                    parameters=[ATTEMPT_ID]
                )
            },
            "/attendance/attempts/{attempt_id}/location": {
                "post": _operation(
                    "Attendance", "Submit location evidence",
                    _responses(errors={
                        "400": "OutsideGeofence / LocationUnavailable",
                        "409": "InvalidStateTransition / StepAlreadyComplete"
                    }),
                    body=_json_body({
                        "latitude": {"type": "number"},
                        "longitude": {"type": "number"},
                        "accuracy": {"type": "number"},
                        "error": {
                            "type": "string",
                            "enum": ["permission_denied", "position_unavailable", "timeout", "unsupported"]
                        }
                    }),
                    parameters=[ATTEMPT_ID]
                )
            },
            "/attendance/attempts/{attempt_id}/face": {
                "post": _operation(
                    "Attendance", "Submit face evidence (commits unless commit is false)",
                    _responses("201", "Attendance committed", {
                        "400": "FaceNotVerified",
                        "409": "InvalidStateTransition / DuplicateAttendance",
                        "502": "MatcherError"
                    }),
                    body=_json_body({
                        "image": {"type": "string", "description": "Base64 encoded capture"},
                        "face_detected": {"type": "boolean"},
                        "match_confidence": {"type": "number"},
                        "commit": {"type": "boolean", "default": True}
                    }),
                    parameters=[ATTEMPT_ID]
                )
            },
            "/attendance/attempts/{attempt_id}/commit": {
                "post": _operation(
                    "Attendance", "Commit a face-verified attempt",
                    _responses("201", "Attendance committed", {
                        "409": "DuplicateAttendance / InvalidStateTransition"
                    }),
                    parameters=[ATTEMPT_ID]
                )
            },
            "/attendance/my-records": {
                "get": _operation(
                    "Attendance", "Claimant's attendance records and statistics",
                    _responses(),
                    parameters=[
                        {"name": "from_date", "in": "query", "schema": {"type": "string", "format": "date-time"}},
                        {"name": "to_date", "in": "query", "schema": {"type": "string", "format": "date-time"}}
                    ]
                )
            },
            "/sessions/": {
                "get": _operation(
                    "Sessions", "Sessions owned by the caller",
                    _responses(),
                    parameters=[{"name": "status", "in": "query", "schema": {"type": "string"}}]
                ),
                "post": _operation(
                    "Sessions", "Create a pending session",
                    _responses("201", "Session created"),
                    body=_json_body({
                        "class_ref": {"type": "string"},
                        "timeslot": {"type": "string"}
                    }, ["class_ref", "timeslot"])
                )
            },
            "/sessions/{session_id}": {
                "get": _operation(
                    "Sessions", "Session details with summary",
                    _responses(errors={"403": "Not the owner", "404": "SessionNotFound"}),
                    parameters=[SESSION_ID]
                )
            },
            "/sessions/{session_id}/activate": {
                "post": _operation(
                    "Sessions", "Activate a session",
                    _responses(errors={"409": "SessionConflict / InvalidStateTransition"}),
                    body=_json_body({
                        "anchor_ip": {"type": "string"},
                        "latitude": {"type": "number"},
                        "longitude": {"type": "number"},
                        "ssid": {"type": "string"},
                        "bssid": {"type": "string"},
                        "radius_meters": {"type": "number"},
                        "late_after_minutes": {"type": "integer"},
                        "duration_minutes": {"type": "integer"}
                    }, ["anchor_ip", "latitude", "longitude"]),
                    parameters=[SESSION_ID]
                )
            },
            "/sessions/{session_id}/close": {
                "post": _operation(
                    "Sessions", "Close a session",
                    _responses(errors={"409": "InvalidStateTransition"}),
                    parameters=[SESSION_ID]
                )
            },
            "/sessions/{session_id}/records": {
                "get": _operation(
                    "Sessions", "Committed records of a session",
                    _responses(),
                    parameters=[SESSION_ID]
                )
            },
            "/sessions/{session_id}/devices": {
                "get": _operation(
                    "Sessions", "Devices observed on the anchor network",
                    _responses(),
                    parameters=[SESSION_ID]
                )
            }
        }
    }
