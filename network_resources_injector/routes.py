import logging

from flask import Blueprint, jsonify, request

from .errors import InjectorError
from .helpers import compute_patch, make_admission_response
from .models import AdmissionReviewModel

log = logging.getLogger("network-resources-injector")


def create_routes(lookup, settings):
    bp = Blueprint("webhook", __name__)

    @bp.route("/health", methods=["GET"])
    def health():
        return {"status": "healthy"}, 200

    @bp.route("/mutate", methods=["POST"])
    def mutate():
        try:
            review_json = request.get_json(silent=True)

            admission = AdmissionReviewModel.from_dict(review_json or {})
            if admission is None:
                log.warning("Invalid AdmissionReview payload for /mutate")
                return jsonify(make_admission_response(uid="", allowed=False)), 400

            req = admission.request
            uid = req.uid
            api_version = admission.api_version

            if req.kind and req.kind != "Pod":
                log.info("Ignoring non-Pod kind %s", req.kind)
                return jsonify(make_admission_response(uid, True, api_version=api_version))

            # Container resources are immutable after creation
            if req.operation != "CREATE":
                log.info("Ignoring %s operation (uid=%s)", req.operation, uid)
                return jsonify(make_admission_response(uid, True, api_version=api_version))

            try:
                patch = compute_patch(req.obj, req.namespace, lookup, settings)
            except InjectorError as e:
                message = f"network resources injection failed: {e}"
                if settings.failure_policy == "FAIL_OPEN":
                    log.warning("FAIL_OPEN: admitting without patch (uid=%s): %s", uid, e)
                    return jsonify(
                        make_admission_response(
                            uid,
                            True,
                            message=message,
                            warnings=[message],
                            api_version=api_version,
                        )
                    )
                log.error("FAIL_CLOSED: rejecting (uid=%s): %s", uid, e)
                return jsonify(
                    make_admission_response(
                        uid, False, message=message, api_version=api_version
                    )
                )

            return jsonify(make_admission_response(uid, True, patch, api_version=api_version))
        except Exception:
            log.error("Error in /mutate", exc_info=True)
            return (
                jsonify(
                    make_admission_response(
                        uid="",
                        allowed=True,
                    )
                ),
                500,
            )

    return bp
