"""
NEvA Activations Module

Each node of a phenotype combines its weighted input signals through one of a
closed set of activation variants. Every variant is a pure function of
(weights, inputs, bias, a), where 'a' is the node's activation parameter
(slope for sigmoid/linear, width for gaussian, scale for quadratic).

The stochastic variant (SIGMOID_PROB_BINARY) also needs a random generator,
which the caller passes explicitly.

Classes:
    Activation: Enumeration of the supported activation variants

Functions:
    evaluate(activation, weights, inputs, bias, a, rng): Compute a node output
"""

import autograd.numpy as np  # type: ignore
from enum import Enum

class Activation(Enum):
    """
    The activation variants a node can use.

    The enum value is the name used in configuration files and in
    serialized genomes.
    """
    IDENTITY            = "identity"
    LINEAR              = "linear"
    SIGMOID             = "sigmoid"
    GAUSSIAN            = "gaussian"
    SIGMOID_PROB_BINARY = "sigmoid_prob_binary"
    QUADRATIC           = "quadratic"
    STEP                = "step"

def _weighted_sum(w, x, bias):
    return bias + np.dot(x, w)

def _sigmoid(z):
    # keep exp() away from overflow
    z = np.clip(z, -60.0, 60.0)
    return 1.0 / (1.0 + np.exp(-z))

def identity_activation(w, x, bias, a, rng=None):
    # passes the first input through, weights are ignored
    return x[0]

def linear_activation(w, x, bias, a, rng=None):
    return _weighted_sum(w, x, bias) * a

def sigmoid_activation(w, x, bias, a, rng=None):
    return _sigmoid(a * _weighted_sum(w, x, bias))

def gaussian_activation(w, x, bias, a, rng=None):
    # the weights act as the center of a radial basis function
    dist = np.sum((x - w) ** 2)
    if a == 0:
        return np.exp(-dist * 0.5)
    return np.exp(-dist * 0.5 / a)

def sigmoid_prob_binary_activation(w, x, bias, a, rng=None):
    if rng is None:
        raise ValueError("the 'sigmoid_prob_binary' activation requires a random generator")
    prob = sigmoid_activation(w, x, bias, a)
    return 1.0 if rng.random() < prob else 0.0

def quadratic_activation(w, x, bias, a, rng=None):
    # x^T (w w^T) x, i.e. the quadratic form of the dyadic product of the weights
    m = np.outer(w, w)
    return a * (bias + np.dot(x, np.dot(m, x)))

def step_activation(w, x, bias, a, rng=None):
    return 1.0 if _weighted_sum(w, x, bias) >= 0 else 0.0

activations = {
    Activation.IDENTITY           : identity_activation,
    Activation.LINEAR             : linear_activation,
    Activation.SIGMOID            : sigmoid_activation,
    Activation.GAUSSIAN           : gaussian_activation,
    Activation.SIGMOID_PROB_BINARY: sigmoid_prob_binary_activation,
    Activation.QUADRATIC          : quadratic_activation,
    Activation.STEP               : step_activation
    }

def evaluate(activation: Activation, weights, inputs, bias: float = 0.0, a: float = 1.0, rng=None) -> float:
    """
    Compute the output of a node.

    Parameters:
        activation: The activation variant of the node
        weights:    The weights of the node's input slots
        inputs:     The values read by the node's input slots
        bias:       The node bias
        a:          The activation parameter
        rng:        numpy Generator (only used by stochastic variants)

    Returns:
        The node output, as a Python float
    """
    w = np.asarray(weights, dtype=float)
    x = np.asarray(inputs,  dtype=float)
    return float(activations[activation](w, x, bias, a, rng))
