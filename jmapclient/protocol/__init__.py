from jmapclient.protocol.core import JMapRequest, JMapResponse, MethodCall, MethodResponse, ResultReference, \
    decode_method_call, encode_method_call, parse_methods
