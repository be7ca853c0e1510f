"""Embedded placeholder image (128x128 grey PNG with a crossed frame)."""

import base64

NOIMAGE_PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAIAAAACACAIAAABMXPacAAAC90lEQVR42u2dQZLDIAwE9f8v"
    "7Z94w16zW04cg6SRoDmlKhemu+LYWAj7YUiHgQABCHgZgxE87n8BMEqj/0fA69eQCqX/+tn+"
    "QcdBAv1PAnCQQP9GAA6i6d8LwEEo/a8E4CCO/rcCcBBE/4EAHETQfyYAB+70HwvAgS/9GQE4"
    "cKQ/KQAHjnAmBeDAC8u8ABy4AFkSgIN1FKsCcLAIwUEADlzQ2SLEYx14cbN1ggc6cIRmLviO"
    "cuBLzLzYHeLAHZc5gtveQQQr86W2sYMgUOaObEsHcZQsgtdmDkIRWRCsbRxE87E4Uhs4SIBj"
    "oZhaO8ghY9GMmjpIw2IJgNo5yGRiOXQaOUgGYmloWjjIp2GZXIo7kKCwZChlHag4WD6Rgg6E"
    "EEyCo5QDLQFTsSjiQB7fhCDkDipkNy2FY/VXESC/BMtTW4Vr8YG3wrUESB5Bi+S1OneERy0L"
    "VhQwspbgSyW1as+lh7wirStgRJYgFMxoNVfHti8Xqy5geJdglk1nldfoNy6d7yFgeGxBKZ7L"
    "6r8p3HIbYScBY3YLbotE1qVeYbOWCv0EjCctSBplsV5VU9u0l+oqYNy1YGuXwjrWbm7QarO3"
    "gHHVgrbp/K1vBXnrdssIQACXIP6EEcBtKA9iCGApgsU4BDjRb+SAFzIICEbJK0kl/foOKEtB"
    "QBY4CrP0yChN1MOiOFePifJ0PSA2aOjRsEVJD4VNenocbFPVg2CjNq0KaNZxbLMO2tXQsEk8"
    "JVqWVbkVpmmfZnq0razyQE7jVs1UaV0snjDNu8XTpn29ePIc4CCOwBEm4iAc4iOOwzFW4lAc"
    "5CaOxlGG4oAc5imOyXG24rAc6Cx2wJHmYgc+Ao6lvx7fQcDh9BchrAqA/iKKJQHQXwcyLwD6"
    "LlgmBUDfC86MAOg7InosAPq+Dp4JgL67gwcCoB/h4FsB0A9y8JUA6Mc5uBcA/VAHNwKgH+3g"
    "kwDoJzh4KwD6OQ6uBUA/zcGFAOhnOngrAEbJDi5+AYzMgQAEnD1+ARMMWPR0lE1WAAAAAElF"
    "TkSuQmCC"
)

NOIMAGE_PNG = base64.b64decode(NOIMAGE_PNG_BASE64)
