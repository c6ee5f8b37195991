from __future__ import annotations


class AppError(Exception):
	# Base class for domain errors (intended, meaningful failures).
	pass


class NotFoundError(AppError):
	# Raised when an edit key or record id does not resolve to a submission.
	pass


class SubmissionInvalid(AppError):
	# Raised for malformed submissions (blank nickname, unknown question, missing answers).
	pass


class EditKeyExhausted(AppError):
	# Raised when every attempt at minting an unused edit key collided.
	pass


class UpstreamUnavailable(AppError):
	# Raised when the text-generation service fails or is not configured.
	pass
